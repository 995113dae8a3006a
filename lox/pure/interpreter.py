"""Tree-walking evaluator for lox.

Statements are executed and expressions evaluated by looking the node's type up in a dispatch table, so each kind of
node has exactly one handler here and nothing lives on the nodes themselves. Variable references use the distances
computed by the resolver (see resolver.py); references without a distance are globals.

`break` and `return` unwind with BreakSignal/ReturnSignal. They are caught at the loop and call boundary respectively
and never leave interpret(); every block restores the environment it replaced no matter how it is left.
"""

import sys
from weakref import WeakKeyDictionary

from lox.lang.error import LoxRuntimeError
from lox.pure import ast
from lox.pure.environment import Environment
from lox.pure.runtime import LoxCallable, LoxClass, LoxFunction, LoxInstance, ReturnSignal
from lox.pure.runtime import is_equal, is_truthy, stringify
from lox.pure.tokens import TokenType


class BreakSignal(Exception):
    """Unwinds a `break` up to the innermost enclosing loop."""


class Interpreter:
    """Executes programs against one persistent global environment, so successive runs (e.g. lines in command-line
    mode) see each other's definitions.

    The side table only holds weak references to its nodes: an entry lives as long as its node, i.e. as long as the
    statements being run or a function declared by them.
    """

    def __init__(self, out=None):
        self.out = out if out is not None else sys.stdout

        self.globals = Environment()
        self.environment = self.globals
        self.locals = WeakKeyDictionary()  # resolver side table, node: scope distance

        self._stmt_handlers = {
            ast.Block: self.execute_block_stmt,
            ast.Break: self.execute_break,
            ast.Class: self.execute_class,
            ast.Expression: self.execute_expression,
            ast.Function: self.execute_function,
            ast.If: self.execute_if,
            ast.Print: self.execute_print,
            ast.Return: self.execute_return,
            ast.Var: self.execute_var,
            ast.While: self.execute_while,
        }
        self._expr_handlers = {
            ast.Assign: self.evaluate_assign,
            ast.Binary: self.evaluate_binary,
            ast.Call: self.evaluate_call,
            ast.Get: self.evaluate_get,
            ast.Grouping: lambda expr: self.evaluate(expr.expression),
            ast.Literal: lambda expr: expr.value,
            ast.Logical: self.evaluate_logical,
            ast.Set: self.evaluate_set,
            ast.This: lambda expr: self.look_up_variable(expr.keyword, expr),
            ast.Unary: self.evaluate_unary,
            ast.Variable: lambda expr: self.look_up_variable(expr.name, expr),
        }

    def interpret(self, statements, locals=None):
        """Runs statements. locals is the side table produced by resolving them. Raises LoxRuntimeError on the first
        runtime error, leaving the remaining statements unexecuted.
        """
        if locals:
            self.locals.update(locals)

        for stmt in statements:
            self.execute(stmt)

    def execute(self, stmt):
        self._stmt_handlers[type(stmt)](stmt)

    def evaluate(self, expr):
        return self._expr_handlers[type(expr)](expr)

    def execute_block(self, statements, environment):
        """Runs statements in environment, then puts the previous environment back, however the block was left."""
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous

    # statements

    def execute_block_stmt(self, stmt):
        self.execute_block(stmt.statements, Environment(self.environment))

    def execute_break(self, stmt):
        raise BreakSignal()

    def execute_class(self, stmt):
        # name exists before the methods so they can refer to their own class
        self.environment.define(stmt.name.lexeme, None)

        methods = {method.name.lexeme: LoxFunction(method, self.environment) for method in stmt.methods}
        self.environment.assign(stmt.name, LoxClass(stmt.name.lexeme, methods))

    def execute_expression(self, stmt):
        self.evaluate(stmt.expression)

    def execute_function(self, stmt):
        self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))

    def execute_if(self, stmt):
        if is_truthy(self.evaluate(stmt.condition)):
            self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            self.execute(stmt.else_branch)

    def execute_print(self, stmt):
        print(stringify(self.evaluate(stmt.expression)), file=self.out)

    def execute_return(self, stmt):
        value = self.evaluate(stmt.value) if stmt.value is not None else None
        raise ReturnSignal(value)

    def execute_var(self, stmt):
        value = self.evaluate(stmt.initializer) if stmt.initializer is not None else None
        self.environment.define(stmt.name.lexeme, value)

    def execute_while(self, stmt):
        try:
            while is_truthy(self.evaluate(stmt.condition)):
                self.execute(stmt.body)
        except BreakSignal:
            pass

    # expressions

    def evaluate_assign(self, expr):
        value = self.evaluate(expr.value)

        distance = self.locals.get(expr)
        if distance is not None:
            self.environment.assign_at(distance, expr.name, value)
        else:
            self.globals.assign(expr.name, value)
        return value

    def evaluate_binary(self, expr):
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator

        if operator.type == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if operator.type == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if operator.type == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError("Operands must be two numbers or two strings.", operator)

        check_number_operands(operator, left, right)

        if operator.type == TokenType.MINUS:
            return left - right
        if operator.type == TokenType.STAR:
            return left * right
        if operator.type == TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError("Can't divide by zero.", operator)
            return left / right
        if operator.type == TokenType.GREATER:
            return left > right
        if operator.type == TokenType.GREATER_EQUAL:
            return left >= right
        if operator.type == TokenType.LESS:
            return left < right
        if operator.type == TokenType.LESS_EQUAL:
            return left <= right

        raise LoxRuntimeError(f"Unknown binary operator '{operator.lexeme}'.", operator)

    def evaluate_call(self, expr):
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", expr.paren)

        if len(arguments) != callee.arity():
            msg = f"Expected {callee.arity()} arguments but got {len(arguments)}."
            raise LoxRuntimeError(msg, expr.paren)

        return callee.call(self, arguments)

    def evaluate_get(self, expr):
        obj = self.evaluate(expr.obj)
        if isinstance(obj, LoxInstance):
            return obj.get(expr.name)
        raise LoxRuntimeError("Only instances have properties.", expr.name)

    def evaluate_logical(self, expr):
        left = self.evaluate(expr.left)

        if expr.operator.type == TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def evaluate_set(self, expr):
        obj = self.evaluate(expr.obj)
        if not isinstance(obj, LoxInstance):
            raise LoxRuntimeError("Only instances have fields.", expr.name)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def evaluate_unary(self, expr):
        right = self.evaluate(expr.right)

        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)

        check_number_operand(expr.operator, right)
        return -right

    def look_up_variable(self, name, expr):
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)


def check_number_operand(operator, operand):
    if not isinstance(operand, float):
        raise LoxRuntimeError("Operand must be a number.", operator)


def check_number_operands(operator, left, right):
    if not (isinstance(left, float) and isinstance(right, float)):
        raise LoxRuntimeError("Operands must be numbers.", operator)
