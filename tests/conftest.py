"""Pytest configuration shared by the suite.

Adds ``--regen-golden``: golden tests then (re)write their PNG fixtures and
pin the quantized-render sha256 in ci/golden_tests/expected/<case>.yaml.
Without it a missing fixture is a test failure.
"""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--regen-golden",
        action="store_true",
        default=False,
        help="Write golden fixtures and digests from the current renderer",
    )


@pytest.fixture(scope="session")
def regen_golden(request):
    return request.config.getoption("--regen-golden")
