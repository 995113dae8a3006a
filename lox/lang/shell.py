"""Handles interactive/command-line mode for the lox interpreter. Uses cmd as backend."""

import cmd


class Shell(cmd.Cmd):
    """Lox interpreter shell. Every line is scanned, parsed, resolved and run on its own, against shared globals."""
    intro = "lox interpreter :: Python backend\nType 'help' for more information, 'exit' or ^D to leave."
    prompt = "> "
    secondary_prompt = ". "  # used for unfinished blocks
    _tmp_prompt = "> "       # also used for prompt swapping in line continuations

    def __init__(self, sess, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sess = sess
        self._tmp_line = ""

    def default(self, line):
        """Executes arbitrary lox source. Lines are joined while braces are left open."""
        line = self._tmp_line + line + "\n"

        if line.count("{") > line.count("}"):
            self._tmp_line = line
            self.prompt = self.secondary_prompt
            return

        self._tmp_line = ""
        self.prompt = self._tmp_prompt

        self.sess.run(line)
        self.sess.error_handler.reset()  # an error on one line doesn't poison the next

    def do_help(self, arg):
        """Shows how to use the shell. There is one help text, whatever arg is."""
        self.stdout.write("Lines are lox source: end statements with ';', e.g. 'var a = 1 + 2;' then 'print a;'.\n"
                          "A line that leaves a '{' open continues on the next one. Variables, functions and\n"
                          "classes stay defined until you leave with 'exit' or ^D.\n")

    def emptyline(self):
        # cmd.Cmd would run the previous line again
        return False

    def do_EOF(self, arg):
        """^D. Leaves the shell, dropping any block still left open."""
        self.stdout.write("\n")
        self._tmp_line = ""
        return True

    def do_exit(self, arg):
        """Leaves the shell. Inside an open block, or with anything after it, the line is lox source instead."""
        if arg or self._tmp_line:
            return self.default(f"exit {arg}".rstrip())  # a lox name that happens to be "exit"
        return True
