"""
Debug tracing for the arkitecture pipeline.

When debug mode is enabled, the generator records one ``PipelineStage``
per step it runs (tokenize, parse, validate, layout, render) together with
the step's duration, a few summary values and any errors it produced.

Usage:
    >>> generator = DiagramGenerator()
    >>> result = generator.compile(source, debug=True)
    >>> trace = generator.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("debug_trace.txt")
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import ValidationError

MAX_VALUE_LENGTH = 100


@dataclass
class PipelineStage:
    """
    Snapshot of one pipeline stage.

    Attributes:
        name: Name of the stage (e.g. "parse").
        data: Summary values recorded for the stage.
        errors: Errors produced by this stage.
        duration_ms: Wall time spent in the stage.
    """

    name: str
    data: Dict[str, Any]
    errors: List[ValidationError] = field(default_factory=list)
    duration_ms: float = 0.0

    def __str__(self) -> str:
        lines = [f"=== Stage: {self.name} ({self.duration_ms:.2f} ms) ==="]
        for key, value in self.data.items():
            # Truncate long values
            str_val = str(value)
            if len(str_val) > MAX_VALUE_LENGTH:
                str_val = str_val[:MAX_VALUE_LENGTH] + "..."
            lines.append(f"  {key}: {str_val}")
        for error in self.errors:
            lines.append(f"  ! {error}")
        return "\n".join(lines)


@dataclass
class RenderTrace:
    """
    Complete trace of one compile run.

    Attributes:
        stages: Pipeline stages in the order they ran.
        input_text: The DSL source that was compiled.
    """

    stages: List[PipelineStage] = field(default_factory=list)
    input_text: str = ""

    def add_stage(
        self,
        name: str,
        data: Dict[str, Any],
        errors: Optional[List[ValidationError]] = None,
        duration_ms: float = 0.0,
    ) -> PipelineStage:
        """
        Add a pipeline stage snapshot.

        Args:
            name: Name of the stage.
            data: Summary values for the stage (copied).
            errors: Errors produced by the stage.
            duration_ms: Time spent in the stage.

        Returns:
            The recorded stage.
        """
        stage = PipelineStage(name, dict(data), list(errors or []), duration_ms)
        self.stages.append(stage)
        return stage

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Get a specific pipeline stage by name."""
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    @property
    def errors(self) -> List[ValidationError]:
        """All errors from every stage, in pipeline order."""
        return [error for stage in self.stages for error in stage.errors]

    @property
    def total_ms(self) -> float:
        return sum(stage.duration_ms for stage in self.stages)

    def summary(self) -> str:
        """
        Generate a human-readable summary of the trace.

        Returns a string with the input text, the stages that ran, and the
        number of errors each produced.
        """
        lines = [
            "=" * 60,
            "RENDER TRACE SUMMARY",
            "=" * 60,
            "",
            f"Input: {repr(self.input_text[:MAX_VALUE_LENGTH])}"
            f"{'...' if len(self.input_text) > MAX_VALUE_LENGTH else ''}",
            "",
            f"Pipeline stages: {len(self.stages)}",
        ]

        for stage in self.stages:
            status = "+" if not stage.errors else "!"
            lines.append(
                f"  [{status}] {stage.name}: {stage.duration_ms:.2f} ms, "
                f"{len(stage.errors)} error(s)"
            )

        lines.extend(["", f"Total time: {self.total_ms:.2f} ms"])
        lines.append(f"Total errors: {len(self.errors)}")

        return "\n".join(lines)

    def dump(self) -> str:
        """Generate a complete human-readable dump of the trace."""
        lines = [self.summary(), "", "=" * 60, "DETAILED TRACE", "=" * 60, ""]

        lines.append("PIPELINE STAGES:")
        lines.append("-" * 40)
        for stage in self.stages:
            lines.append(str(stage))
            lines.append("")

        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
