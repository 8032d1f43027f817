# sushell

The inner workings of a bash-compatible shell, usable as a library on
POSIX systems. It has no dependencies outside the standard library.

## Modules

- `sushell.options`: the `Options` class for `set -o` options
  (`Options.basic()`, which holds `pipefail`) and `shopt` options
  (`Options.shopts()`, which holds `extglob`). It has listing helpers
  `format_option` and `format_set_option`. An unknown option name raises
  `InvalidOptionError`.
- `sushell.data`: `Data`, which holds layered shell variables (strings or
  lists of strings), positional parameters, flags, aliases and functions.
  Unset variables fall back to the environment.
- `sushell.paths`: `make_absolute_path` and `make_canonical_path` expand a
  leading `~` and resolve `.` and `..` without touching the file system.
- `sushell.builtins`: the builtins `true_`, `false_`, `alias`, `exit_`,
  `cd`, `pwd`, `read`, `return_`, `break_`, `unset` and `history`, plus
  `is_varname`.
- `sushell.setcmd`: the `set_` and `shopt` builtins, with `set_parameters`,
  `shopt_print` and `format_variable`.
- `sushell.jobs`: `WaitStatus`, `StatusKind`, `JobEntry` and the job
  control builtins `bg`, `fg`, `jobs` and `wait`. It also has
  `check_status`, `print_status_change`, `new_job_id`, `arg_to_id` and
  `signal_description`.
- `sushell.core`: `ShellCore`, which holds the whole shell state. It
  registers the builtins above, waits on child processes and pipelines
  and keeps `$?` and `PIPESTATUS` up to date. It also reads and writes the
  history file, and tracks the current directory and the `PS4` prefix.
- `sushell.arith`: arithmetic expansion.
  - `numbers` parses integers (decimal, `0x` hex, leading-`0` octal,
    `BASE#DIGITS`) and floats, and applies operators with signed 64-bit
    wrap-around.
  - `elements` defines the expression elements and reorders them into
    reverse Polish form.
  - `evaluator` defines `ArithmeticExpr`, `calculate`, `str_to_num` and
    `format_in_base`.
  - Errors are raised as `ArithError`.

Every builtin takes a `ShellCore` and an argument list whose first item is
the command name, and returns an exit status. Builtins write to standard
output and standard error like their shell counterparts. `ShellCore.exit()`
(and so the `exit` builtin) raises `SystemExit` with the status in `$?`.

## Installation

```
pip install .
```

## Examples

```python
from sushell.options import Options
from sushell.data import Data
from sushell.arith.numbers import parse_int, int_binary

opts = Options.shopts()
print(opts.query("extglob"))        # True

data = Data()
data.set_param("greeting", "hello")
print(data.get_param("greeting"))   # hello

print(parse_int("0x1f"))            # 31
print(parse_int("2#101"))           # 5
print(int_binary("**", 2, 10))      # 1024
```

Builtins run against a `ShellCore`. Creating one sets the shell's initial
parameters and makes the process ignore `SIGPIPE` and `SIGTSTP`:

```python
from sushell.core import ShellCore
from sushell.builtins import cd, pwd

core = ShellCore()
status = cd(core, ["cd", "/tmp"])   # 0 on success
pwd(core, ["pwd"])                  # prints /tmp
```

Arithmetic works on lists of elements. A `Word` element wraps any object
that has a `text` attribute and an `eval_as_value(core)` method that
returns the expanded text:

```python
from sushell.core import ShellCore
from sushell.arith.elements import BinaryOp, Integer, Word
from sushell.arith.evaluator import ArithmeticExpr, format_in_base

class Name:
    def __init__(self, text):
        self.text = text

    def eval_as_value(self, core):
        return self.text

core = ShellCore()
core.data.set_param("x", "5")

expr = ArithmeticExpr(elements=[Word(Name("x")), BinaryOp("+="), Integer(2)])
print(expr.eval(core))                  # 7
print(core.data.get_param("x"))         # 7

print(format_in_base(255, "16", False)) # 16#FF
```

## What the package does not do

This is the state and the builtins of a shell, not a shell you can start.
The package has:

- no command to run;
- no parser for command lines or for arithmetic text, so expressions must
  be given as element lists;
- no way of running external programs or pipelines.

`ShellCore.wait_process` and `ShellCore.wait_pipeline` wait on process ids
that the caller started. The builtins `eval`, `source`, `local`, `compgen`
and `complete` are not provided.

## Running the tests

```
pip install .[test]
pytest
```