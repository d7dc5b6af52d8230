"""
Rune Grammar Definition.

This module contains the Lark grammar for the bundled Rune language. The
grammar is written for the LALR parser and the basic lexer, so keywords are
never identifiers and syntax errors carry the exact offending token.
"""

rune_grammar = r"""
    start: fn_def*

    // --- Items ---
    fn_def: "fn" NAME "(" [params] ")" block
    params: NAME ("," NAME)* [","]

    block: "{" stmt* [expr] "}"

    // --- Statements ---
    ?stmt: let_stmt
         | assign_stmt
         | aug_assign
         | expr_stmt
         | return_stmt
         | if_stmt
         | while_stmt
         | loop_stmt
         | break_stmt
         | continue_stmt

    let_stmt: "let" NAME "=" expr ";"
    assign_stmt: NAME "=" expr ";"
    aug_assign: NAME "+=" expr ";" -> add_assign
              | NAME "-=" expr ";" -> sub_assign
              | NAME "*=" expr ";" -> mul_assign
              | NAME "/=" expr ";" -> div_assign
    expr_stmt: expr ";"
    return_stmt: "return" [expr] ";"
    if_stmt: "if" expr block ["else" (block | if_stmt)]
    while_stmt: "while" expr block
    loop_stmt: "loop" block
    break_stmt: "break" ";"
    continue_stmt: "continue" ";"

    // --- Expressions (lowest precedence first) ---
    ?expr: or_expr

    ?or_expr: and_expr
            | or_expr "||" and_expr -> or_op

    ?and_expr: comparison
             | and_expr "&&" comparison -> and_op

    ?comparison: sum
               | sum "==" sum -> eq
               | sum "!=" sum -> ne
               | sum "<" sum -> lt
               | sum "<=" sum -> le
               | sum ">" sum -> gt
               | sum ">=" sum -> ge

    ?sum: product
        | sum "+" product -> add
        | sum "-" product -> sub

    ?product: unary
            | product "*" unary -> mul
            | product "/" unary -> div
            | product "%" unary -> rem

    ?unary: postfix
          | "-" unary -> neg
          | "!" unary -> not_op

    ?postfix: atom
            | postfix "[" expr "]" -> index

    ?atom: INT -> int_lit
         | FLOAT -> float_lit
         | STRING -> str_lit
         | "true" -> true_lit
         | "false" -> false_lit
         | "(" ")" -> unit_lit
         | NAME -> var
         | NAME "(" [args] ")" -> call
         | "[" [args] "]" -> vec_lit
         | "(" expr ")"

    args: expr ("," expr)* [","]

    // --- Terminals ---
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    FLOAT.2: /[0-9][0-9_]*\.[0-9][0-9_]*([eE][+-]?[0-9]+)?/
    INT: /0x[0-9a-fA-F_]+|0o[0-7_]+|0b[01_]+|[0-9][0-9_]*/
    STRING: /"(?:[^"\\]|\\.)*"/s

    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""