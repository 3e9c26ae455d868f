"""Parameter API client."""

from mediation.client.base import ApiClient, ApiResult, results_of
from mediation.models import Parameter, ParameterCreate, ParameterUpdate


class ParameterClient:
    """Client for configuration parameters."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list_parameters(self) -> ApiResult[list[Parameter]]:
        return await self.api.read(
            "parameters/",
            lambda body: [Parameter(**p) for p in results_of(body)],
            fallback=list,
        )

    async def get_parameter(self, parameter_id: str) -> ApiResult[Parameter]:
        return await self.api.read(f"parameters/{parameter_id}/", lambda body: Parameter(**body))

    async def create_parameter(self, data: ParameterCreate) -> Parameter:
        body = await self.api.post("parameters/", json=data.model_dump(mode="json"))
        return Parameter(**body)

    async def update_parameter(self, parameter_id: str, update: ParameterUpdate) -> Parameter:
        body = await self.api.put(
            f"parameters/{parameter_id}/", json=update.model_dump(mode="json", exclude_none=True)
        )
        return Parameter(**body)

    async def delete_parameter(self, parameter_id: str) -> None:
        await self.api.delete(f"parameters/{parameter_id}/")

    async def deploy(self, parameter_id: str) -> Parameter:
        body = await self.api.post(f"parameters/{parameter_id}/deploy/")
        return Parameter(**body)

    async def undeploy(self, parameter_id: str) -> Parameter:
        body = await self.api.post(f"parameters/{parameter_id}/undeploy/")
        return Parameter(**body)
