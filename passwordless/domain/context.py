from typing import Any, Mapping, Optional

# Per-request values handed through to strategies (environment, request
# metadata). None means "no context".
Context = Optional[Mapping[str, Any]]
