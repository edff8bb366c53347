from pytest import fixture


@fixture
def magic(mocker):
    """
    Shorthand for mocker.MagicMock. It's magic!
    """
    return mocker.MagicMock


@fixture
def async_magic(mocker):
    """
    Shorthand for mocker.AsyncMock, for the async git provider methods
    """
    return mocker.AsyncMock
