import logging

from app.logging.logger import Log


class TestConfigure:
    def test_debug_flag_overrides_level(self) -> None:
        Log.configure("WARNING", debug=True)
        assert logging.getLogger("redactor").level == logging.DEBUG
        Log.configure("INFO")

    def test_level_without_debug(self) -> None:
        Log.configure("warning")
        assert logging.getLogger("redactor").level == logging.WARNING
        Log.configure("INFO")

    def test_single_stdout_handler(self) -> None:
        Log.configure("INFO")
        Log.configure("INFO")
        assert len(logging.getLogger("redactor").handlers) == 1
