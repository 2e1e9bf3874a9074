"""Resolve ``@agent-name`` / ``/command-name`` references to one document."""

from __future__ import annotations

from config import Config
from utils import get_logger

from .errors import AmbiguousReferenceError, UnknownReferenceError
from .parser import normalize_reference, render_template, split_invocation
from .resolver import CapabilityRegistry
from .types import CapabilityDocument, CapabilityKind, InvocationRequest, InvocationResult

logger = get_logger(__name__)

AGENT_PREFIX = "@"
COMMAND_PREFIX = "/"
AGENT_TOKEN_PREFIX = "agent-"


def _strip_agent_prefix(value: str) -> str:
    if value.startswith(AGENT_TOKEN_PREFIX):
        return value[len(AGENT_TOKEN_PREFIX) :]
    return value


def parse_reference(token: str) -> tuple[CapabilityKind, str]:
    """Split a reference token into (kind, normalized key)."""
    token = token.strip()
    if token.startswith(AGENT_PREFIX):
        kind = CapabilityKind.AGENT
    elif token.startswith(COMMAND_PREFIX):
        kind = CapabilityKind.COMMAND
    else:
        raise UnknownReferenceError(token, f"Not a capability reference: {token!r}")

    key = normalize_reference(token[1:])
    if kind is CapabilityKind.AGENT:
        key = _strip_agent_prefix(key)
    if not key:
        raise UnknownReferenceError(token, f"Empty capability reference: {token!r}")
    return kind, key


def lookup_keys(document: CapabilityDocument) -> set[str]:
    keys = {normalize_reference(document.id), normalize_reference(document.name)}
    if document.kind is CapabilityKind.AGENT:
        keys = {_strip_agent_prefix(key) for key in keys}
    return keys


def find_document(token: str, registry: CapabilityRegistry) -> CapabilityDocument:
    """Exact match first, then a single unambiguous prefix match; never guess."""
    kind, key = parse_reference(token)
    documents = registry.documents(kind)

    exact = [doc for doc in documents if key in lookup_keys(doc)]
    if len(exact) == 1:
        return exact[0]
    if len(exact) > 1:
        raise AmbiguousReferenceError(token, [doc.id for doc in exact])

    prefixed = [
        doc for doc in documents if any(k.startswith(key) for k in lookup_keys(doc))
    ]
    if len(prefixed) == 1:
        return prefixed[0]
    if len(prefixed) > 1:
        raise AmbiguousReferenceError(token, [doc.id for doc in prefixed])
    raise UnknownReferenceError(token)


def resolve_reference(
    token: str,
    argument_text: str,
    registry: CapabilityRegistry,
    default_phrase: str | None = None,
) -> InvocationResult:
    document = find_document(token, registry)
    phrase = default_phrase if default_phrase is not None else Config.DEFAULT_ARGUMENTS_PHRASE
    rendered_arguments, rendered = render_template(document.content, argument_text, phrase)
    logger.debug(f"Resolved {token} to {document.kind.value} '{document.id}'")
    return InvocationResult(document, rendered_arguments, rendered)


def route(request: InvocationRequest, registry: CapabilityRegistry) -> InvocationResult:
    return resolve_reference(request.reference_token, request.argument_text, registry)


def resolve_user_input(user_input: str, registry: CapabilityRegistry) -> InvocationResult:
    """Resolve a full input line such as ``/review fix the parser``."""
    user_input = user_input.strip()
    prefix = user_input[:1]
    token, args = split_invocation(user_input, prefix)
    return route(InvocationRequest(f"{prefix}{token}", args), registry)
