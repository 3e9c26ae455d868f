"""Parameter API routes."""

from fastapi import APIRouter, HTTPException

from mediation.db import parameter_store
from mediation.models import ActionResponse, Parameter, ParameterCreate, ParameterUpdate

router = APIRouter(prefix="/parameters", tags=["parameters"])


@router.get("/")
async def list_parameters() -> list[Parameter]:
    return await parameter_store.list_parameters()


@router.post("/", status_code=201)
async def create_parameter(data: ParameterCreate) -> Parameter:
    return await parameter_store.create_parameter(data)


@router.get("/{parameter_id}/")
async def get_parameter(parameter_id: str) -> Parameter:
    parameter = await parameter_store.get_parameter(parameter_id)
    if parameter is None:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return parameter


@router.put("/{parameter_id}/")
async def update_parameter(parameter_id: str, update: ParameterUpdate) -> Parameter:
    """Update an undeployed parameter."""
    try:
        parameter = await parameter_store.update_parameter(parameter_id, update)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid default value: {e}")
    if parameter is None:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return parameter


@router.delete("/{parameter_id}/")
async def delete_parameter(parameter_id: str) -> ActionResponse:
    deleted = await parameter_store.delete_parameter(parameter_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return ActionResponse(status="deleted", message="Parameter deleted")


@router.post("/{parameter_id}/deploy/")
async def deploy_parameter(parameter_id: str) -> Parameter:
    parameter = await parameter_store.deploy_parameter(parameter_id)
    if parameter is None:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return parameter


@router.post("/{parameter_id}/undeploy/")
async def undeploy_parameter(parameter_id: str) -> Parameter:
    parameter = await parameter_store.undeploy_parameter(parameter_id)
    if parameter is None:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return parameter
