"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of writing
``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias maps to one
``get_*`` factory that tests can replace through
``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends

from mathtutor.configs.config import get_api_config
from mathtutor.configs.system import APIConfig
from mathtutor.core.relay import SolveRelay, get_solve_relay
from mathtutor.render.markdown import MathMarkdownRenderer, get_markdown_renderer

APIConfigDep = Annotated[APIConfig, Depends(get_api_config)]
SolveRelayDep = Annotated[SolveRelay, Depends(get_solve_relay)]
MarkdownRendererDep = Annotated[MathMarkdownRenderer, Depends(get_markdown_renderer)]
