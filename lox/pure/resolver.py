"""Static scope resolution for lox.

Walks the AST once, before anything runs, and records for every local variable reference how many scopes out its
binding lives. The interpreter then jumps straight to that frame instead of searching by name, which is what makes
closures see the binding that was in scope where they were written:

```
var a = "global";
{
    fun show() { print a; }
    show();          // global
    var a = "block";
    show();          // still global
}
```

References that aren't found in any local scope get no entry and are looked up in the globals by name at runtime.
Globals are late-bound so that functions can refer to globals declared after them.

The scopes pushed here must mirror the environments the interpreter creates exactly: one per block, one per function
call (holding the parameters), and one per bound method (holding `this`).
"""

from enum import Enum, auto

from lox.lang.error import LoxStaticError
from lox.pure import ast


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()


class Resolver:
    """Resolves one program. Errors are reported to error_handler and resolution carries on."""

    def __init__(self, error_handler):
        self.error_handler = error_handler

        self.scopes = []   # innermost last, each a dict of name: whether it's been fully defined
        self.locals = {}   # node: scope distance
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

        self._stmt_handlers = {
            ast.Block: self.resolve_block,
            ast.Class: self.resolve_class,
            ast.Expression: self.resolve_expression_stmt,
            ast.Function: self.resolve_function_stmt,
            ast.If: self.resolve_if,
            ast.Print: self.resolve_print,
            ast.Return: self.resolve_return,
            ast.Var: self.resolve_var,
            ast.While: self.resolve_while,
            ast.Break: lambda stmt: None,
        }
        self._expr_handlers = {
            ast.Assign: self.resolve_assign,
            ast.Binary: self.resolve_binary,
            ast.Call: self.resolve_call,
            ast.Get: lambda expr: self.resolve(expr.obj),
            ast.Grouping: lambda expr: self.resolve(expr.expression),
            ast.Literal: lambda expr: None,
            ast.Logical: self.resolve_binary,
            ast.Set: self.resolve_set,
            ast.This: self.resolve_this,
            ast.Unary: lambda expr: self.resolve(expr.right),
            ast.Variable: self.resolve_variable,
        }

    def resolve(self, node):
        """Resolves a statement, an expression, or a list of statements."""
        if isinstance(node, list):
            for stmt in node:
                self.resolve(stmt)
        elif isinstance(node, ast.Stmt):
            self._stmt_handlers[type(node)](node)
        else:
            self._expr_handlers[type(node)](node)

    # statements

    def resolve_block(self, stmt):
        self.begin_scope()
        self.resolve(stmt.statements)
        self.end_scope()

    def resolve_class(self, stmt):
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        self.begin_scope()
        self.scopes[-1]["this"] = True

        for method in stmt.methods:
            self.resolve_function(method, FunctionType.METHOD)

        self.end_scope()
        self.current_class = enclosing_class

    def resolve_expression_stmt(self, stmt):
        self.resolve(stmt.expression)

    def resolve_function_stmt(self, stmt):
        # defined before the body so the function can call itself
        self.declare(stmt.name)
        self.define(stmt.name)
        self.resolve_function(stmt, FunctionType.FUNCTION)

    def resolve_function(self, function, function_type):
        enclosing_function = self.current_function
        self.current_function = function_type

        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        self.resolve(function.body)
        self.end_scope()

        self.current_function = enclosing_function

    def resolve_if(self, stmt):
        self.resolve(stmt.condition)
        self.resolve(stmt.then_branch)
        if stmt.else_branch is not None:
            self.resolve(stmt.else_branch)

    def resolve_print(self, stmt):
        self.resolve(stmt.expression)

    def resolve_return(self, stmt):
        if self.current_function == FunctionType.NONE:
            self.error(stmt.keyword, "Can't return from top-level code.")
        if stmt.value is not None:
            self.resolve(stmt.value)

    def resolve_var(self, stmt):
        self.declare(stmt.name)
        if stmt.initializer is not None:
            self.resolve(stmt.initializer)
        self.define(stmt.name)

    def resolve_while(self, stmt):
        self.resolve(stmt.condition)
        self.resolve(stmt.body)

    # expressions

    def resolve_assign(self, expr):
        self.resolve(expr.value)
        self.resolve_local(expr, expr.name)

    def resolve_binary(self, expr):
        self.resolve(expr.left)
        self.resolve(expr.right)

    def resolve_call(self, expr):
        self.resolve(expr.callee)
        for argument in expr.arguments:
            self.resolve(argument)

    def resolve_set(self, expr):
        self.resolve(expr.value)
        self.resolve(expr.obj)

    def resolve_this(self, expr):
        if self.current_class == ClassType.NONE:
            self.error(expr.keyword, "Can't use 'this' outside of a class.")
            return
        self.resolve_local(expr, expr.keyword)

    def resolve_variable(self, expr):
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            self.error(expr.name, "Can't read local variable in its own initializer.")
        self.resolve_local(expr, expr.name)

    # scopes

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def declare(self, name):
        """Adds name to the innermost scope as not yet usable. Globals aren't tracked."""
        if not self.scopes:
            return

        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr, name):
        """Records the distance to the innermost scope declaring name. No entry means global."""
        for distance, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = distance
                return

    def error(self, token, msg):
        self.error_handler.report(LoxStaticError(msg, token))


def resolve(statements, error_handler):
    """Returns the side table of node: scope distance for statements. Check error_handler.had_error afterwards."""
    resolver = Resolver(error_handler)
    resolver.resolve(statements)
    return resolver.locals
