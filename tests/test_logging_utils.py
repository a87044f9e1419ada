import logging

import numpy as np
import pytest

from conceptmap.logging_utils import _safe_repr, apply_debug_logging, debug_log_call

logger = logging.getLogger("tests.debug_logging")


def test_array_summary_reports_shape_and_range():
    summary = _safe_repr(np.array([1.0, 2.0, np.nan, 4.0, 8.0]))

    assert "shape=(5,)" in summary
    assert "min=1" in summary
    assert "max=8" in summary
    assert "non_finite=1" in summary
    assert "values=[0.5]" in _safe_repr(np.array([0.5]))


def test_decorated_call_logs_entry_exit_and_failure(caplog):
    @debug_log_call(logger, name="divide")
    def divide(a, b):
        return a / b

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        assert divide(6, b=3) == 2
        with pytest.raises(ZeroDivisionError):
            divide(1, 0)

    messages = [record.getMessage() for record in caplog.records]
    assert "Entering divide (args=[6], kwargs={b=3})" in messages
    assert "Exiting divide -> 2.0" in messages
    assert "Exception in divide" in messages


def test_apply_debug_logging_wraps_module_functions_once():
    def helper(x):
        return x + 1

    helper.__module__ = "fake_module"
    namespace = {"__name__": "fake_module", "helper": helper}

    apply_debug_logging(namespace, logger=logger)
    wrapped = namespace["helper"]
    apply_debug_logging(namespace, logger=logger)

    assert namespace["helper"] is wrapped
    assert wrapped(1) == 2
    assert getattr(wrapped, "_debug_logging_wrapped", False)
