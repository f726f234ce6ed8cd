"""Core configuration, logging and exceptions for CalcFlow."""
