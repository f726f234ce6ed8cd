"""HTTP API for CalcFlow."""
