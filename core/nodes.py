"""
Syntax tree for the bundled Rune language.

Produced by ``RuneTransformer`` from the Lark parse tree and consumed by the
code generator. Every node keeps the span it was parsed from.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from .diagnostics import Span


# Expressions
@dataclass
class Expr:
    pass


@dataclass
class Literal(Expr):
    value: Any
    span: Optional[Span] = None


@dataclass
class Var(Expr):
    name: str
    span: Optional[Span] = None


@dataclass
class Unary(Expr):
    op: str
    operand: Expr
    span: Optional[Span] = None


@dataclass
class Binary(Expr):
    op: str
    left: Expr
    right: Expr
    span: Optional[Span] = None


@dataclass
class Logical(Expr):
    op: str  # "&&" or "||"
    left: Expr
    right: Expr
    span: Optional[Span] = None


@dataclass
class Call(Expr):
    name: str
    args: List[Expr]
    span: Optional[Span] = None


@dataclass
class Index(Expr):
    target: Expr
    index: Expr
    span: Optional[Span] = None


@dataclass
class VecLit(Expr):
    items: List[Expr]
    span: Optional[Span] = None


# Statements
@dataclass
class Stmt:
    pass


@dataclass
class Let(Stmt):
    name: str
    value: Expr
    span: Optional[Span] = None


@dataclass
class Assign(Stmt):
    name: str
    value: Expr
    op: Optional[str] = None  # "+", "-", ... for compound assignment
    span: Optional[Span] = None


@dataclass
class ExprStmt(Stmt):
    expr: Expr
    span: Optional[Span] = None


@dataclass
class Return(Stmt):
    value: Optional[Expr]
    span: Optional[Span] = None


@dataclass
class Block:
    stmts: List[Stmt]
    tail: Optional[Expr] = None
    span: Optional[Span] = None


@dataclass
class If(Stmt):
    cond: Expr
    then: Block
    otherwise: Optional[Block] = None  # an ``else if`` is wrapped in its own block
    span: Optional[Span] = None


@dataclass
class While(Stmt):
    cond: Expr
    body: Block
    span: Optional[Span] = None


@dataclass
class Loop(Stmt):
    body: Block
    span: Optional[Span] = None


@dataclass
class Break(Stmt):
    span: Optional[Span] = None


@dataclass
class Continue(Stmt):
    span: Optional[Span] = None


# Items
@dataclass
class Param:
    name: str
    span: Optional[Span] = None


@dataclass
class FnDef:
    name: str
    params: List[Param]
    body: Block
    span: Optional[Span] = None


@dataclass
class Program:
    functions: List[FnDef] = field(default_factory=list)
