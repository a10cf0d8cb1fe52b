from fastapi import APIRouter, Depends, status

from chatlink.api.dependencies import get_current_user_id, get_user_service
from chatlink.core.logging import get_logger
from chatlink.schemas.user import IconUpdate, PasswordUpdate, Token, UserCredentials, UserResponse, UsernameUpdate
from chatlink.services.user_service import UserService

# Создание маршрутизатора
router = APIRouter(prefix="/auth", tags=["auth"])

# Получение логгера
logger = get_logger("auth_routes")


@router.post(
    "/sign-up",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация нового пользователя",
)
async def sign_up(
    credentials: UserCredentials,
    user_service: UserService = Depends(get_user_service),
):
    """
    Регистрация нового пользователя

    Проверяет, что имя пользователя свободно, и сохраняет хеш пароля.
    """
    user = await user_service.sign_up(credentials.username, credentials.password)
    return UserResponse.model_validate(user)


@router.post("/sign-in", response_model=Token, summary="Аутентификация пользователя")
async def sign_in(
    credentials: UserCredentials,
    user_service: UserService = Depends(get_user_service),
):
    """Проверяет учетные данные и выдает JWT токен"""
    token = await user_service.authenticate(credentials.username, credentials.password)
    return Token(access_token=token)


@router.get("/get-me", response_model=UserResponse, summary="Текущий пользователь")
async def get_me(
    current_user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.get_user(current_user_id)
    return UserResponse.model_validate(user)


@router.put("/change/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    data: PasswordUpdate,
    current_user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    await user_service.change_password(current_user_id, data.old_password, data.new_password)


@router.put("/change/username", response_model=UserResponse)
async def change_username(
    data: UsernameUpdate,
    current_user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.change_username(current_user_id, data.username)
    return UserResponse.model_validate(user)


@router.put("/change/icon", response_model=UserResponse)
async def change_icon(
    data: IconUpdate,
    current_user_id: int = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    user = await user_service.change_icon(current_user_id, data.icon)
    return UserResponse.model_validate(user)
