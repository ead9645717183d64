"""Middleware helpers for attaching identity state to host handlers."""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import UntrustedRequestError
from .context import IdentityContext
from .verifier import FidentVerifier, default_verifier


Handler = Callable[[Any, IdentityContext], Awaitable[Any]]
Wrapped = Callable[[Any], Awaitable[Any]]


def resolve_identity(request: Any, verifier: Optional[FidentVerifier] = None) -> IdentityContext:
    """Build the :class:`IdentityContext` for ``request``.

    Signature verification only runs when a claim is present; anonymous
    requests carry no outcome.
    """
    verifier = verifier or default_verifier
    identity_id = verifier.identity_claim(request)
    if not identity_id:
        return IdentityContext()
    result = verifier.verify(request)
    return IdentityContext(
        identity_id=identity_id,
        authenticated=True,
        verified=result.valid,
        outcome=result.outcome,
    )


def with_identity(
    handler: Handler,
    verifier: Optional[FidentVerifier] = None,
    require_verified: bool = False,
) -> Wrapped:
    """Wrap ``handler`` so it receives the request's identity context.

    With ``require_verified`` set, a request whose claim fails verification
    raises :class:`UntrustedRequestError` instead of reaching ``handler``.
    Requests without a claim are always passed through as anonymous.
    """

    @functools.wraps(handler)
    async def _wrapper(request: Any) -> Any:
        identity = resolve_identity(request, verifier)
        if require_verified and identity.authenticated and not identity.verified:
            raise UntrustedRequestError(identity.identity_id, identity.outcome.value)
        return await handler(request, identity)

    return _wrapper
