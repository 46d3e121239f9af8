"""HTTP routes - the UI boundary over the notifier service."""
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, field_validator

from .scheduler import Group, NotifierService, Rule, interval_to_human

router = APIRouter()


# ============== Request Schemas ==============

class GroupCreate(BaseModel):
    name: str


class GroupRename(BaseModel):
    name: str


class RuleUpsert(BaseModel):
    """Rule editor form. Omit ``id`` to create a new rule."""
    id: str | None = None
    title: str
    body: str = ""
    interval_minutes: int = Field(default=1, ge=1, le=1440)
    is_enabled: bool = True

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value


class RuleToggle(BaseModel):
    enabled: bool


class SoundSetting(BaseModel):
    enabled: bool


# ============== Helpers ==============

def _service(request: Request) -> NotifierService:
    return request.app.state.service


def _group_dict(service: NotifierService, group: Group) -> dict[str, Any]:
    data = group.to_dict()
    data["rule_count"] = len(service.state.rules_for(group.id))
    return data


def _rule_dict(service: NotifierService, rule: Rule) -> dict[str, Any]:
    data = rule.to_dict()
    data["interval_text"] = interval_to_human(rule.interval_minutes)
    data["identifier"] = service.adapter.identifier_for(rule)
    data["should_be_scheduled"] = service.state.is_schedulable(rule)
    return data


# ============== Groups ==============

@router.get("/groups")
async def list_groups(request: Request):
    service = _service(request)
    return {"groups": [_group_dict(service, g) for g in service.list_groups()]}


@router.post("/groups", status_code=201)
async def create_group(body: GroupCreate, request: Request):
    service = _service(request)
    group = await service.create_group(body.name)
    return _group_dict(service, group)


@router.patch("/groups/{group_id}")
async def rename_group(group_id: str, body: GroupRename, request: Request):
    service = _service(request)
    group = await service.rename_group(group_id, body.name)
    return _group_dict(service, group)


@router.delete("/groups/{group_id}", status_code=204)
async def delete_group(group_id: str, request: Request):
    await _service(request).delete_group(group_id)


@router.post("/groups/{group_id}/start")
async def start_group(group_id: str, request: Request):
    service = _service(request)
    group = await service.start_group(group_id)
    return _group_dict(service, group)


@router.post("/groups/{group_id}/stop")
async def stop_group(group_id: str, request: Request):
    service = _service(request)
    group = await service.stop_group(group_id)
    return _group_dict(service, group)


# ============== Rules ==============

@router.get("/groups/{group_id}/rules")
async def list_rules(group_id: str, request: Request):
    service = _service(request)
    return {"rules": [_rule_dict(service, r) for r in service.rules_for(group_id)]}


@router.put("/groups/{group_id}/rules")
async def upsert_rule(group_id: str, body: RuleUpsert, request: Request):
    service = _service(request)
    fields = body.model_dump(exclude={"id"})
    rule = Rule(group_id=group_id, **fields)
    if body.id:
        rule.id = body.id
    rule = await service.upsert_rule(rule)
    return _rule_dict(service, rule)


@router.post("/rules/{rule_id}/toggle")
async def toggle_rule(rule_id: str, body: RuleToggle, request: Request):
    service = _service(request)
    rule = await service.toggle_rule(rule_id, body.enabled)
    return _rule_dict(service, rule)


@router.delete("/rules/{rule_id}", status_code=204)
async def delete_rule(rule_id: str, request: Request):
    await _service(request).delete_rule(rule_id)


# ============== Settings ==============

@router.get("/settings")
async def get_settings(request: Request):
    service = _service(request)
    status = await service.authorization_status()
    return {"sound_enabled": service.sound_enabled, "authorization": status.value}


@router.put("/settings/sound")
async def set_sound(body: SoundSetting, request: Request):
    service = _service(request)
    await service.set_sound_enabled(body.enabled)
    return {"sound_enabled": service.sound_enabled}


@router.get("/authorization")
async def authorization(request: Request):
    status = await _service(request).authorization_status()
    return {"authorization": status.value, "can_schedule": status.can_schedule}


# ============== Lifecycle ==============

@router.post("/lifecycle/foreground")
async def foreground(request: Request):
    """The client came back to the foreground; repair drift (debounced)."""
    result = await _service(request).reconcile()
    return result.to_dict()


@router.post("/lifecycle/rebuild")
async def rebuild(request: Request):
    result = await _service(request).rebuild_all()
    return result.to_dict()
