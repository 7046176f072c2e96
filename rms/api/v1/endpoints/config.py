"""Runtime configuration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from rms.core.database import DbSession
from rms.core.dependencies import ClientContext, CurrentUser, require_permission
from rms.models.audit import AuditAction
from rms.models.config import ConfigCategory
from rms.models.user import User
from rms.schemas.common import ApiResponse
from rms.schemas.config import ConfigResponse, ConfigUpdate
from rms.services.audit import AuditService
from rms.services.config import ConfigService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[ConfigResponse]])
def list_configs(
    current_user: CurrentUser,
    db: DbSession,
    category: ConfigCategory | None = None,
):
    configs = ConfigService(db).list_configs(category)
    return ApiResponse(data=[ConfigResponse.model_validate(c) for c in configs])


@router.get("/{key}", response_model=ApiResponse[ConfigResponse])
def get_config(key: str, current_user: CurrentUser, db: DbSession):
    return ApiResponse(data=ConfigResponse.model_validate(ConfigService(db).get_config(key)))


@router.put("/{key}", response_model=ApiResponse[ConfigResponse])
def update_config(
    key: str,
    request: ConfigUpdate,
    admin: Annotated[User, Depends(require_permission("manage:settings"))],
    db: DbSession,
    client: ClientContext,
):
    """
    Update a configuration value. GRADE_MAPPING changes apply to results
    written afterwards.
    """
    entry, before = ConfigService(db).update_config(key, request, admin.id)

    AuditService(db).log(
        action=AuditAction.CONFIG_UPDATED,
        resource_type="config",
        resource_id=entry.key,
        actor_id=admin.id,
        before=before,
        after={"value": entry.value, "is_active": entry.is_active},
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    return ApiResponse(message="Configuration updated", data=ConfigResponse.model_validate(entry))
