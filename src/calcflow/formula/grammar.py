"""Lark grammar definition for value-only formulas.

The grammar follows the math.js flavored syntax users type into batch
formulas after ``[Column]`` references have been rewritten to identifiers:

- Arithmetic: +, -, *, /, % (modulo), ^ (power, right associative)
- Comparison: ==, !=, <, >, <=, >=
- Logical keywords: and, or, xor, not
- Conditional: condition ? value_if_true : value_if_false
- Function calls: NAME(arg1, arg2, ...)
- Literals: numbers, "strings" or 'strings', true, false, null
"""

FORMULA_GRAMMAR = r"""
    ?start: expression

    ?expression: conditional

    ?conditional: or_expr
        | or_expr "?" expression ":" expression -> ternary

    ?or_expr: xor_expr
        | or_expr "or" xor_expr -> or_op

    ?xor_expr: and_expr
        | xor_expr "xor" and_expr -> xor_op

    ?and_expr: not_expr
        | and_expr "and" not_expr -> and_op

    ?not_expr: comparison
        | "not" not_expr -> not_op

    ?comparison: additive
        | comparison "==" additive -> eq
        | comparison "!=" additive -> ne
        | comparison "<" additive -> lt
        | comparison ">" additive -> gt
        | comparison "<=" additive -> le
        | comparison ">=" additive -> ge

    ?additive: multiplicative
        | additive "+" multiplicative -> add
        | additive "-" multiplicative -> sub

    ?multiplicative: unary
        | multiplicative "*" unary -> mul
        | multiplicative "/" unary -> div
        | multiplicative "%" unary -> mod

    ?unary: power
        | "-" unary -> neg
        | "+" unary -> pos

    ?power: atom
        | atom "^" unary -> pow

    ?atom: NUMBER -> number
        | STRING -> string
        | "true" -> true
        | "false" -> false
        | "null" -> null
        | function_call
        | NAME -> symbol
        | "(" expression ")"

    function_call: NAME "(" [arguments] ")"

    arguments: expression ("," expression)*

    NAME: /[A-Za-z_][A-Za-z0-9_]*/

    STRING: /"[^"]*"/ | /'[^']*'/

    // Sign is handled by the unary operator
    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""
