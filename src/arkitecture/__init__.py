"""
Arkitecture - architecture diagrams from a small text DSL

A Python library that turns nested boxes, groups and arrows described in
text into SVG (or PNG) diagrams.

Example:
    >>> from arkitecture import DiagramGenerator
    >>> generator = DiagramGenerator()
    >>> svg = generator.generate('''
    ...     frontend { label: "Web App" }
    ...     backend {
    ...         direction: "horizontal"
    ...         api { label: "API" }
    ...         db { label: "Database" }
    ...     }
    ...     frontend --> backend.api
    ... ''')

Debug Mode Example:
    >>> result = generator.compile(source, debug=True)
    >>> print(generator.get_trace().summary())
"""

__version__ = "0.1.0"

from .generator import (
    ArkitectureError,
    CompileResult,
    DiagramGenerator,
    arkitecture_to_svg,
    generate_svg,
)
from .layout import AnchorPoint, LayoutEngine, LayoutResult, NodeBox, compute_layout
from .models import (
    Arrow,
    ContainerNode,
    Direction,
    Document,
    ErrorKind,
    GroupNode,
    ParseResult,
    ValidationError,
    split_endpoint,
)
from .parser import Parser, parse, parse_arkitecture
from .png_renderer import PNGRenderer
from .recovery import RecoveryContext, RecoveryPolicy, synchronize
from .svg_renderer import SVGRenderer, render_svg
from .text_measurement import (
    FontConfig,
    HeuristicTextMeasurer,
    PillowTextMeasurer,
    TextDimensions,
    TextMeasurer,
    default_text_measurer,
)
from .tokenizer import Token, TokenizerError, TokenType, Tokenizer, tokenize
from .tracer import PipelineStage, RenderTrace
from .validator import Validator, validate

__all__ = [
    # Main API
    "DiagramGenerator",
    "CompileResult",
    "ArkitectureError",
    "arkitecture_to_svg",
    "generate_svg",
    # Document model
    "Document",
    "ContainerNode",
    "GroupNode",
    "Arrow",
    "Direction",
    "ErrorKind",
    "ValidationError",
    "ParseResult",
    "split_endpoint",
    # Tokenizer
    "Tokenizer",
    "Token",
    "TokenType",
    "TokenizerError",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    "parse_arkitecture",
    "RecoveryContext",
    "RecoveryPolicy",
    "synchronize",
    # Validator
    "Validator",
    "validate",
    # Layout
    "LayoutEngine",
    "LayoutResult",
    "NodeBox",
    "AnchorPoint",
    "compute_layout",
    # Text measurement
    "FontConfig",
    "TextDimensions",
    "TextMeasurer",
    "HeuristicTextMeasurer",
    "PillowTextMeasurer",
    "default_text_measurer",
    # Rendering
    "SVGRenderer",
    "render_svg",
    "PNGRenderer",
    # Debug/Tracing
    "RenderTrace",
    "PipelineStage",
]
