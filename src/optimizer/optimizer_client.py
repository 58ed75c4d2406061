"""gRPC client for the remote image optimizer.

Channels are dialed through a process-wide ``ConnectionCache`` so concurrent
first requests for one address share a single dial.
"""

from __future__ import annotations

from typing import Any

from core.constants import (
    DEFAULT_DIAL_TIMEOUT_SECONDS,
    DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
    IMAGE_TYPE_PNG,
)
from core.context import RequestContext
from core.errors import ImagePipeBackendError, ImagePipeDependencyError
from optimizer.connection_cache import ConnectionCache


def dial_optimizer(address: str, timeout_seconds: float | None = None) -> Any:
    """Open an insecure gRPC channel and wait until it is ready.

    Raises:
        ImagePipeBackendError: If the channel is not ready within the timeout.
    """
    if timeout_seconds is None:
        timeout_seconds = DEFAULT_DIAL_TIMEOUT_SECONDS
    grpc = _import_grpc()
    channel = grpc.insecure_channel(address)
    try:
        grpc.channel_ready_future(channel).result(timeout=timeout_seconds)
    except grpc.FutureTimeoutError as error:
        channel.close()
        raise ImagePipeBackendError(
            f"Failed to connect to optimizer at {address} within {timeout_seconds:.3f}s."
        ) from error
    return channel


_CONNECTIONS: ConnectionCache[Any] = ConnectionCache(dial_optimizer)


def get_connection(address: str, timeout_seconds: float = DEFAULT_DIAL_TIMEOUT_SECONDS) -> Any:
    """Return the shared channel for ``address``, dialing on first use."""
    return _CONNECTIONS.get(address, timeout_seconds)


def do_optim(
    ctx: RequestContext,
    address: str,
    data: bytes,
    quality: int,
    output_format: str,
    timeout_seconds: float = DEFAULT_OPTIMIZE_TIMEOUT_SECONDS,
) -> bytes:
    """Send png ``data`` to the optimizer and return the transcoded bytes.

    Args:
        ctx: Request context bounding the RPC.
        address: Optimizer ``host:port``.
        data: Lossless png payload.
        quality: Requested quality; 0 lets the optimizer choose. Values are
            clamped to the wire field's unsigned 32-bit range.
        output_format: One of png, jpeg, webp, avif; anything else means jpeg.
        timeout_seconds: Upper bound for the RPC.

    Raises:
        ImagePipeBackendError: If dialing or the RPC fails.
    """
    from optimizer.optim_messages import (
        DO_OPTIM_METHOD,
        MAX_QUALITY,
        OptimReply,
        OptimRequest,
        output_type_number,
    )

    grpc = _import_grpc()
    ctx.check()
    channel = get_connection(address, ctx.timeout(DEFAULT_DIAL_TIMEOUT_SECONDS))
    request = OptimRequest(
        source=output_type_number(IMAGE_TYPE_PNG),
        output=output_type_number(output_format),
        data=data,
        quality=min(max(quality, 0), MAX_QUALITY),
    )
    call = channel.unary_unary(
        DO_OPTIM_METHOD,
        request_serializer=OptimRequest.SerializeToString,
        response_deserializer=OptimReply.FromString,
    )
    try:
        reply = call(request, timeout=ctx.timeout(timeout_seconds))
    except grpc.RpcError as error:
        raise ImagePipeBackendError(f"Optimizer at {address} failed: {error}") from error
    return bytes(reply.data)


def _import_grpc() -> Any:
    try:
        import grpc
    except ImportError as error:
        raise ImagePipeDependencyError(
            "Remote optimization requires grpcio, but it is not installed. "
            "Install grpcio and protobuf to use optimize tasks."
        ) from error
    return grpc
