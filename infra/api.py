"""
REST API surface: resource tree, method bindings and deployment stage.
"""

from dataclasses import dataclass

from aws_cdk import CfnOutput
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_iam as iam

from infra import compute, constants
from infra.compute import ComputeHandles
from infra.context import BuildContext
from infra.errors import ConfigurationError


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    capability: str
    proxy: bool = True

    @property
    def segments(self) -> list[str]:
        return [segment for segment in self.path.split("/") if segment]


ROUTES: tuple[Route, ...] = (
    Route("GET", "/hello", compute.HELLO),
    Route("POST", "/infraction", compute.INFRACTIONS),
    Route("GET", "/infraction/{id}", compute.INFRACTIONS),
    Route("GET", "/infraction-types", compute.INFRACTION_TYPES, proxy=False),
    Route("POST", "/device", compute.DEVICES),
    Route("GET", "/device/{id}", compute.DEVICES),
    Route("GET", "/reports/wallofshame", compute.WALL_OF_SHAME),
)


def _is_path_parameter(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def validate_routes(routes: tuple[Route, ...], functions: ComputeHandles) -> None:
    """
    Check a route table before any resource is added.

    Raises:
        ConfigurationError: on an empty path, a path parameter that is not the
            last segment, a duplicate method/path pair, or a binding to a
            function that is not API-invocable
    """
    seen: set[tuple[str, str]] = set()
    for route in routes:
        segments = route.segments
        if not segments:
            raise ConfigurationError(f"Route {route.method} '{route.path}' has no path segments")
        if any(_is_path_parameter(segment) for segment in segments[:-1]):
            raise ConfigurationError(f"Path parameters must be the last segment: '{route.path}'")
        key = (route.method, "/".join(segments))
        if key in seen:
            raise ConfigurationError(f"Duplicate route {route.method} '{route.path}'")
        seen.add(key)
        if not functions.is_api_bound(route.capability):
            raise ConfigurationError(f"'{route.capability}' cannot be bound to {route.method} '{route.path}'")


def _resource_for(root: apigw.IResource, segments: list[str]) -> apigw.IResource:
    resource = root
    for segment in segments:
        resource = resource.get_resource(segment) or resource.add_resource(segment)
    return resource


def create_api(
    ctx: BuildContext,
    functions: ComputeHandles,
    routes: tuple[Route, ...] = ROUTES,
) -> apigw.RestApi:
    """
    Create the RestApi and bind every route to its function.

    Each bound function is granted invoke to the API Gateway principal once.
    """
    validate_routes(routes, functions)

    api = apigw.RestApi(
        ctx.scope,
        "RestApi",
        rest_api_name=ctx.name("api"),
        cloud_watch_role=True,
        deploy_options=apigw.StageOptions(
            stage_name=ctx.config.rest_api_stage,
            metrics_enabled=True,
            logging_level=apigw.MethodLoggingLevel.INFO,
            data_trace_enabled=True,
        ),
    )

    granted: list[str] = []
    for route in routes:
        function = functions.function(route.capability)
        resource = _resource_for(api.root, route.segments)
        resource.add_method(route.method, apigw.LambdaIntegration(function, proxy=route.proxy))

        if route.capability not in granted:
            function.grant_invoke(iam.ServicePrincipal(constants.APIGATEWAY_PRINCIPAL))
            granted.append(route.capability)

    CfnOutput(
        ctx.scope,
        "RestApiUrl",
        value=api.url,
        description="The API endpoint",
    )
    ctx.log("Declared REST API", routes=len(routes), invocable=granted)
    return api
