"""
Тесты единицы работы и преобразования ошибок хранилища
"""
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from chatlink.core.exceptions import ConflictError, NotFoundError, StoreUnavailableError
from chatlink.db.unit_of_work import UnitOfWork, translate_db_error


def _integrity_error() -> IntegrityError:
    return IntegrityError("INSERT INTO chats ...", {}, Exception("UNIQUE constraint failed"))


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_translate_integrity_error():
    assert isinstance(translate_db_error(_integrity_error(), "insert"), ConflictError)


def test_translate_operational_error():
    assert isinstance(translate_db_error(_operational_error(), "select"), StoreUnavailableError)


def test_translate_unknown_error_is_returned_as_is():
    error = SQLAlchemyError("unexpected")
    assert translate_db_error(error, "select") is error


@pytest.mark.asyncio
async def test_commit_on_success(mock_db_session):
    async with UnitOfWork(mock_db_session, "test"):
        pass

    mock_db_session.commit.assert_awaited_once()
    mock_db_session.rollback.assert_not_called()


@pytest.mark.asyncio
async def test_rollback_on_error(mock_db_session):
    """Ошибка внутри блока откатывает транзакцию и пробрасывается дальше"""
    with pytest.raises(NotFoundError):
        async with UnitOfWork(mock_db_session, "test"):
            raise NotFoundError("missing")

    mock_db_session.rollback.assert_awaited_once()
    mock_db_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_commit_failure_is_translated(mock_db_session):
    mock_db_session.commit.side_effect = _integrity_error()

    with pytest.raises(ConflictError):
        async with UnitOfWork(mock_db_session, "test"):
            pass

    mock_db_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_commit_connection_failure(mock_db_session):
    mock_db_session.commit.side_effect = _operational_error()

    with pytest.raises(StoreUnavailableError):
        async with UnitOfWork(mock_db_session, "test"):
            pass
