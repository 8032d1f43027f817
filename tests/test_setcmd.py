import pytest

from sushell import setcmd
from sushell.data import Data
from sushell.options import Options


class FakeCore:
    def __init__(self):
        self.data = Data()
        self.options = Options.basic()
        self.shopts = Options.shopts()


@pytest.fixture
def core():
    return FakeCore()


def test_format_variable_string():
    assert setcmd.format_variable("x", "1") == "x=1"


def test_format_variable_array():
    assert setcmd.format_variable("a", ["p", "q"]) == 'a=([0]="p" [1]="q")'


def test_format_variable_empty_array():
    assert setcmd.format_variable("a", []) == "a=()"


def test_set_prints_sorted_variables(core, capsys):
    core.data.set_param("zz_var", "1")
    core.data.set_array("aa_arr", ["x"])
    assert setcmd.set_(core, ["set"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == [setcmd.format_variable("aa_arr", ["x"]), "zz_var=1"]


def test_set_double_dash_sets_positionals(core):
    assert setcmd.set_(core, ["set", "--", "a", "b"]) == 0
    assert core.data.get_position_params() == ["a", "b"]


def test_set_plain_words_set_positionals(core):
    setcmd.set_(core, ["set", "a", "b"])
    assert core.data.get_position_params() == ["a", "b"]


def test_set_parameters_replaces_top(core):
    core.data.position_parameters = [["sh", "old"]]
    setcmd.set_parameters(core, ["sh", "new"])
    assert core.data.position_parameters == [["sh", "new"]]


def test_set_parameters_empty_stack(core):
    core.data.position_parameters = []
    with pytest.raises(RuntimeError):
        setcmd.set_parameters(core, ["x"])


def test_set_flags_on_and_off(core):
    assert setcmd.set_(core, ["set", "-xe"]) == 0
    assert "x" in core.data.flags and "e" in core.data.flags
    setcmd.set_(core, ["set", "-x"])
    assert core.data.flags.count("x") == 1
    setcmd.set_(core, ["set", "+x"])
    assert "x" not in core.data.flags
    assert "e" in core.data.flags


def test_set_invalid_flag(core, capsys):
    assert setcmd.set_(core, ["set", "-q"]) == 2
    assert "invalid option" in capsys.readouterr().err


def test_set_named_option(core):
    assert setcmd.set_(core, ["set", "-o", "pipefail"]) == 0
    assert core.options.query("pipefail") is True
    assert setcmd.set_(core, ["set", "+o", "pipefail"]) == 0
    assert core.options.query("pipefail") is False


def test_set_unknown_named_option(core):
    assert setcmd.set_(core, ["set", "-o", "bogus"]) == 2


def test_set_o_lists(core, capsys):
    setcmd.set_(core, ["set", "-o"])
    assert capsys.readouterr().out.splitlines() == core.options.listing()


def test_set_plus_o_lists(core, capsys):
    setcmd.set_(core, ["set", "+o"])
    assert capsys.readouterr().out.splitlines() == ["set +o pipefail"]


def test_set_without_args_is_error(core):
    with pytest.raises(ValueError):
        setcmd.set_(core, [])


def test_shopt_unset_and_set(core):
    assert setcmd.shopt(core, ["shopt", "-u", "extglob"]) == 0
    assert core.shopts.query("extglob") is False
    assert setcmd.shopt(core, ["shopt", "-s", "extglob"]) == 0
    assert core.shopts.query("extglob") is True


def test_shopt_unknown_option(core, capsys):
    assert setcmd.shopt(core, ["shopt", "-s", "bogus"]) == 1
    assert "invalid shell option name" in capsys.readouterr().err


def test_shopt_bad_mode(core, capsys):
    assert setcmd.shopt(core, ["shopt", "-x", "extglob"]) == 1
    assert "usage" in capsys.readouterr().err


def test_shopt_lists_all(core, capsys):
    assert setcmd.shopt(core, ["shopt"]) == 0
    assert capsys.readouterr().out.splitlines() == core.shopts.listing()


def test_shopt_print_one(core, capsys):
    assert setcmd.shopt(core, ["shopt", "extglob"]) == 0
    assert capsys.readouterr().out.strip() == core.shopts.describe("extglob").strip()


def test_shopt_print_unknown(core):
    assert setcmd.shopt_print(core, ["shopt", "bogus"], False) == 1


def test_shopt_print_by_state(core, capsys):
    setcmd.shopt_print(core, ["shopt", "-u"], False)
    assert capsys.readouterr().out == ""
    setcmd.shopt_print(core, ["shopt", "-s"], False)
    assert capsys.readouterr().out.splitlines() == core.shopts.listing_if(True)