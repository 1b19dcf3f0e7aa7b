import allure
from click.testing import CliRunner

from future_times import __version__
from future_times.main import future_times

pytestmark = [
    allure.epic("Future Times"),
    allure.feature("CLI"),
]


def test_version():
    assert __version__


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(future_times, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
