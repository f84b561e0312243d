import json
import pytest
import sys
from unittest.mock import patch
from madness import main

@pytest.fixture
def mock_functions():
    with patch("madness.cmd_validate") as mock_validate, \
         patch("madness.cmd_check_creation") as mock_check_creation, \
         patch("madness.cmd_standings") as mock_standings, \
         patch("madness.cmd_structure") as mock_structure, \
         patch("madness.cmd_serve") as mock_serve:
        for mock in (mock_validate, mock_check_creation, mock_standings, mock_structure, mock_serve):
            mock.return_value = 0
        yield {
            "validate": mock_validate,
            "check-creation": mock_check_creation,
            "standings": mock_standings,
            "structure": mock_structure,
            "serve": mock_serve,
        }

@pytest.mark.parametrize("args,command_key", [
    (["validate", "bracket.json"], "validate"),
    (["check-creation"], "check-creation"),
    (["standings", "brackets.json", "results.json"], "standings"),
    (["structure"], "structure"),
    (["serve"], "serve"),
])
def test_cli_command_routing(mock_functions, args, command_key):
    """Verify CLI routes commands correctly to their handler functions."""
    with patch.object(sys, 'argv', ["madness.py"] + args):
        assert main() == 0
        mock_functions[command_key].assert_called_once()

def test_cli_standings_args(mock_functions):
    """Test standings command arguments parsing."""
    argv = ["madness.py", "standings", "b.json", "r.json", "--tie-breaker", "151", "--limit", "5", "--output", "out.csv"]
    with patch.object(sys, 'argv', argv):
        main()
        args = mock_functions["standings"].call_args[0][0]
        assert args.brackets == "b.json"
        assert args.results == "r.json"
        assert args.tie_breaker == 151
        assert args.limit == 5
        assert args.output == "out.csv"

def test_cli_missing_command():
    """Test behavior when no command is provided."""
    with patch.object(sys, 'argv', ["madness.py"]), pytest.raises(SystemExit):
        main()

def test_cli_contract_error_exit_code(tmp_path):
    """A malformed submission file exits with code 2."""
    path = tmp_path / "bracket.json"
    path.write_text(json.dumps({"playerName": "Pat", "games": "nope"}))
    with patch.object(sys, 'argv', ["madness.py", "validate", str(path)]):
        assert main() == 2

def test_cli_validate_invalid_bracket(tmp_path):
    """An invalid bracket prints the result and exits with code 1."""
    path = tmp_path / "bracket.json"
    path.write_text(json.dumps({"playerName": "Pat", "playerEmail": "pat@example.com", "games": []}))
    with patch.object(sys, 'argv', ["madness.py", "validate", str(path)]), \
         patch("builtins.print") as mock_print:
        assert main() == 1
    printed = [str(c.args[0]) for c in mock_print.call_args_list if c.args]
    assert any("Missing pick for First Round game 1 (East)" in p for p in printed)

def test_cli_check_creation_without_sheet():
    """With no sheet configured the fallback config keeps submissions open."""
    with patch.object(sys, 'argv', ["madness.py", "check-creation"]), \
         patch("builtins.print") as mock_print:
        assert main() == 0
    mock_print.assert_any_call("Bracket submissions are OPEN")
