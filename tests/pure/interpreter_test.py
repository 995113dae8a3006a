import io
import unittest

from lox.lang.error import ErrorHandler
from lox.lang.session import Session


def run(source):
    """Runs source through the whole pipeline. Returns (printed lines, error handler)."""
    out = io.StringIO()
    error_handler = ErrorHandler(quiet=True)
    Session(error_handler, cmd_line=True, out=out).run(source)
    return out.getvalue().splitlines(), error_handler


def runtime_error(source):
    lines, error_handler = run(source)
    assert not error_handler.had_error, error_handler.diagnostics
    assert error_handler.had_runtime_error, lines
    return error_handler.diagnostics[-1]


class ExpressionTestCase(unittest.TestCase):

    def test_arithmetic(self):
        cases = {
            "1 + 2 * 3": "7",
            "(1 + 2) * 3": "9",
            "10 - 4 - 3": "3",
            "2 * 3 / 4": "1.5",
            "-(2 + 3)": "-5",
            "1 / 3": str(1 / 3),
            "0.1 + 0.2": str(0.1 + 0.2),
            "7 - 0.5": "6.5",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};")[0], case)

    def test_comparison_and_equality(self):
        cases = {
            "1 < 2": "true",
            "2 <= 2": "true",
            "3 > 4": "false",
            "3 >= 4": "false",
            "1 == 1": "true",
            "\"a\" == \"a\"": "true",
            "nil == nil": "true",
            "nil == false": "false",
            "0 == false": "false",
            "1 == true": "false",
            "\"1\" == 1": "false",
            "1 != 2": "true",
            "nil != nil": "false",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};")[0], case)

    def test_strings(self):
        self.assertEqual(["ab"], run("print \"a\" + \"b\";")[0])
        self.assertEqual(["hi there"], run("var a = \"hi\"; print a + \" \" + \"there\";")[0])

    def test_truthiness(self):
        cases = {
            "!nil": "true",
            "!false": "true",
            "!0": "false",
            "!\"\"": "false",
            "!true": "false",
        }
        for case, expected in cases.items():
            self.assertEqual([expected], run(f"print {case};")[0], case)

    def test_short_circuit(self):
        cases = {
            "false and (1/0)": "false",
            "true or (1/0)": "true",
            "nil or \"default\"": "default",
            "1 and 2": "2",
            "nil and 1": "nil",
            "0 or 1": "0",
        }
        for case, expected in cases.items():
            lines, error_handler = run(f"print {case};")
            self.assertFalse(error_handler.had_runtime_error, case)
            self.assertEqual([expected], lines, case)

    def test_display_forms(self):
        lines, __ = run("fun f() {} class C {} print nil; print 3.0; print f; print C; print C();")
        self.assertEqual(["nil", "3", "<fn f>", "C", "C instance"], lines)


class RuntimeErrorTestCase(unittest.TestCase):

    def test_type_errors(self):
        cases = {
            "\"a\" + 1;": "Operands must be two numbers or two strings.",
            "1 + nil;": "Operands must be two numbers or two strings.",
            "\"a\" - \"b\";": "Operands must be numbers.",
            "1 < \"2\";": "Operands must be numbers.",
            "-\"a\";": "Operand must be a number.",
            "1 / 0;": "Can't divide by zero.",
            "\"f\"();": "Can only call functions and classes.",
            "print undefined;": "Undefined variable 'undefined'.",
            "undefined = 1;": "Undefined variable 'undefined'.",
            "var a = 1; a.b;": "Only instances have properties.",
            "var a = 1; a.b = 2;": "Only instances have fields.",
            "class C {} C().nope;": "Undefined property 'nope'.",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, runtime_error(case).message, case)

    def test_error_aborts_remaining_statements(self):
        lines, error_handler = run("print 1;\nprint 1 / 0;\nprint 2;")
        self.assertEqual(["1"], lines)
        self.assertEqual(2, error_handler.diagnostics[-1].line)
        self.assertEqual("runtime", error_handler.diagnostics[-1].kind)

    def test_arity(self):
        cases = {
            "fun f(a, b) {} f(1);": "Expected 2 arguments but got 1.",
            "fun f() {} f(1, 2, 3);": "Expected 0 arguments but got 3.",
            "class C { m(a) {} } C().m();": "Expected 1 arguments but got 0.",
            "class P { P(x, y) {} } P(1);": "Expected 2 arguments but got 1.",
            "class E {} E(1);": "Expected 0 arguments but got 1.",
        }
        for case, expected in cases.items():
            self.assertEqual(expected, runtime_error(case).message, case)

    def test_deep_recursion_is_reported(self):
        diagnostic = runtime_error("fun f() { f(); } f();")
        self.assertEqual("Stack overflow.", diagnostic.message)

    def test_bounded_recursion_runs(self):
        count = "fun count(n) { if (n == 0) return 0; return 1 + count(n - 1); }"
        for depth in [100, 1000, 2000]:
            lines, error_handler = run(f"{count} print count({depth});")
            self.assertFalse(error_handler.had_runtime_error, depth)
            self.assertEqual([str(depth)], lines, depth)

    def test_recursive_method_runs(self):
        source = """
            class Walker { down(n) { if (n > 0) return this.down(n - 1); return "bottom"; } }
            print Walker().down(1000);
        """
        self.assertEqual(["bottom"], run(source)[0])

    def test_deep_nesting_runs(self):
        cases = {
            "print " + "(" * 200 + "1" + ")" * 200 + ";": ["1"],
            "{" * 200 + "print 2;" + "}" * 200: ["2"],
            "print " + "-" * 200 + "3;": ["3"],
        }
        for case, expected in cases.items():
            lines, error_handler = run(case)
            self.assertFalse(error_handler.had_error)
            self.assertEqual(expected, lines)

    def test_too_much_nesting_is_a_syntax_error(self):
        lines, error_handler = run("print " + "(" * 20000 + "1" + ")" * 20000 + ";")
        self.assertEqual([], lines)
        self.assertTrue(error_handler.had_error)
        self.assertFalse(error_handler.had_runtime_error)
        self.assertEqual("Too much nesting.", error_handler.diagnostics[-1].message)

    def test_compile_errors_block_running(self):
        should_not_run = ["print 1; print ;", "print 1; { var a = a; }", "print 1; return 2;", "print 1; @"]
        for case in should_not_run:
            lines, error_handler = run(case)
            self.assertTrue(error_handler.had_error, case)
            self.assertFalse(error_handler.had_runtime_error, case)
            self.assertEqual([], lines, case)


class StatementTestCase(unittest.TestCase):

    def test_variables_and_blocks(self):
        lines, __ = run("""
            var a = "outer";
            {
                var a = "inner";
                print a;
                a = "changed";
                print a;
            }
            print a;
            var b;
            print b;
        """)
        self.assertEqual(["inner", "changed", "outer", "nil"], lines)

    def test_assignment_without_shadowing_reaches_outer(self):
        lines, __ = run("var a = 1; { a = 2; { a = a + 1; } } print a;")
        self.assertEqual(["3"], lines)

    def test_global_self_initializer(self):
        lines, error_handler = run("var a = 1; var a = a + 1; print a;")
        self.assertFalse(error_handler.had_error)
        self.assertEqual(["2"], lines)

    def test_control_flow(self):
        lines, __ = run("""
            if (1 > 2) print "no"; else print "yes";
            if (nil) print "no";
            var i = 0;
            while (i < 3) { print i; i = i + 1; }
            for (var j = 0; j < 2; j = j + 1) print j * 10;
        """)
        self.assertEqual(["yes", "0", "1", "2", "0", "10"], lines)

    def test_break_exits_innermost_loop(self):
        lines, __ = run("""
            for (var i = 0; i < 3; i = i + 1) {
                var j = 0;
                while (true) {
                    if (j == 2) break;
                    print i * 10 + j;
                    j = j + 1;
                }
            }
            print "done";
        """)
        self.assertEqual(["0", "1", "10", "11", "20", "21", "done"], lines)

    def test_break_restores_environment(self):
        lines, __ = run("""
            var a = "global";
            {
                var a = "outer";
                while (true) {
                    var a = "loop";
                    { var a = "deep"; break; }
                }
                print a;
            }
            print a;
        """)
        self.assertEqual(["outer", "global"], lines)

    def test_for_loop_variable_is_scoped(self):
        lines, error_handler = run("for (var i = 0; i < 1; i = i + 1) {} print i;")
        self.assertEqual("Undefined variable 'i'.", error_handler.diagnostics[-1].message)


class FunctionTestCase(unittest.TestCase):

    def test_call_and_return(self):
        lines, __ = run("""
            fun add(a, b) { return a + b; }
            print add(1, 2);
            fun nothing() {}
            print nothing();
            fun early(n) { while (true) { if (n > 2) return n; n = n + 1; } }
            print early(0);
            fun single(x) return x * 2;
            print single(4);
        """)
        self.assertEqual(["3", "nil", "3", "8"], lines)

    def test_recursion(self):
        lines, __ = run("""
            fun fib(n) { if (n < 2) return n; return fib(n - 1) + fib(n - 2); }
            print fib(15);
        """)
        self.assertEqual(["610"], lines)

    def test_forward_reference_to_global(self):
        lines, __ = run("fun a() { return b(); } fun b() { return \"b\"; } print a();")
        self.assertEqual(["b"], lines)

    def test_closures_counter(self):
        lines, __ = run("""
            fun makeCounter() {
                var i = 0;
                fun count() { i = i + 1; return i; }
                return count;
            }
            var c1 = makeCounter();
            var c2 = makeCounter();
            print c1();
            print c1();
            print c2();
        """)
        self.assertEqual(["1", "2", "1"], lines)

    def test_closures_from_same_call_share_state(self):
        lines, __ = run("""
            var get;
            var set;
            fun pair() {
                var value = "initial";
                fun g() { return value; }
                fun s(v) { value = v; }
                get = g;
                set = s;
            }
            pair();
            print get();
            set("updated");
            print get();
        """)
        self.assertEqual(["initial", "updated"], lines)

    def test_closure_binds_lexically(self):
        lines, __ = run("""
            var a = "global";
            {
                fun show() { print a; }
                show();
                var a = "block";
                show();
            }
        """)
        self.assertEqual(["global", "global"], lines)

    def test_functions_are_values(self):
        lines, __ = run("""
            fun twice(f, x) { return f(f(x)); }
            fun inc(n) { return n + 1; }
            print twice(inc, 5);
            var alias = inc;
            print alias == inc;
        """)
        self.assertEqual(["7", "true"], lines)


class ClassTestCase(unittest.TestCase):

    def test_fields_and_methods(self):
        lines, __ = run("""
            class Point {
                Point(x, y) { this.x = x; this.y = y; }
                sum() { return this.x + this.y; }
                move(dx) { this.x = this.x + dx; return this; }
            }
            var p = Point(1, 2);
            print p.sum();
            p.move(10).move(100);
            print p.x;
            p.z = "new field";
            print p.z;
        """)
        self.assertEqual(["3", "111", "new field"], lines)

    def test_this_is_per_instance(self):
        lines, __ = run("""
            class Box {
                Box(v) { this.v = v; }
                get() { return this.v; }
            }
            var a = Box("a");
            var b = Box("b");
            var getA = a.get;
            print a.get();
            print b.get();
            b.v = "changed";
            print getA();
            print b.get();
        """)
        self.assertEqual(["a", "b", "a", "changed"], lines)

    def test_fields_shadow_methods(self):
        lines, __ = run("""
            class C { m() { return "method"; } }
            var c = C();
            print c.m();
            c.m = "field";
            print c.m;
        """)
        self.assertEqual(["method", "field"], lines)

    def test_constructor_result_is_instance(self):
        lines, __ = run("""
            class C { C() { this.ready = true; return 1; } }
            var c = C();
            print c;
            print c.ready;
        """)
        self.assertEqual(["C instance", "true"], lines)

    def test_method_closes_over_declaration_scope(self):
        lines, __ = run("""
            fun make(prefix) {
                class Greeter { greet(name) { return prefix + name; } }
                return Greeter;
            }
            var G = make("hello ");
            print G().greet("you");
        """)
        self.assertEqual(["hello you"], lines)

    def test_bound_method_as_callback(self):
        lines, __ = run("""
            class Counter {
                Counter() { this.n = 0; }
                tick() { this.n = this.n + 1; }
            }
            fun call3(f) { f(); f(); f(); }
            var c = Counter();
            call3(c.tick);
            print c.n;
        """)
        self.assertEqual(["3"], lines)


if __name__ == '__main__':
    unittest.main()
