"""Job file loading and validation.

A job file is a YAML mapping describing one ffmpeg invocation::

    global: -loglevel info
    inputs:
      - url: input.mkv
        options: {ss: 30}
      - logo.png
    filters:
      - filter: overlay
        inputs: ["0:v", "1:v"]
        options: {x: 10, y: 10}
        outputs: out
    outputs:
      - url: output.mp4
        options:
          map: ["[out]", "0:a"]
          "c:v": libx264
          crf: 20

Options accept the same forms as the Python API: a literal option string,
a list of flags, or a mapping. Compiled filters become the
``-filter_complex`` global option. A url of ``-`` reads stdin or writes
stdout; ``load_job(...).to_command()`` can bind those to caller streams.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, BinaryIO, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ffrun.exceptions import ConfigurationError, JobFileError
from ffrun.options import FilterSpec, as_option_set, filter_graph
from ffrun.process import FFmpegCommand, Input, Output

logger = logging.getLogger(__name__)

OptionScalar = Union[str, int, float, None]
OptionsModel = Union[
    str,
    list[str],
    dict[str, Union[OptionScalar, list[OptionScalar]]],
    None,
]


class EndpointModel(BaseModel):
    """An input or output entry."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
    options: OptionsModel = None


class FilterModel(BaseModel):
    """A filter entry of the filter graph."""

    model_config = ConfigDict(extra="forbid")

    filter: str = Field(min_length=1)
    inputs: Union[str, list[str], None] = None
    outputs: Union[str, list[str], None] = None
    options: Union[str, int, float, list[Any], dict[str, Any], None] = None

    def to_spec(self) -> FilterSpec:
        return FilterSpec(
            filter=self.filter,
            inputs=self.inputs,
            outputs=self.outputs,
            options=self.options,
        )


class JobModel(BaseModel):
    """A complete job file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    global_options: OptionsModel = Field(default=None, alias="global")
    inputs: list[EndpointModel] = Field(min_length=1)
    outputs: list[EndpointModel] = Field(min_length=1)
    filters: list[FilterModel] = Field(default_factory=list)

    @field_validator("inputs", "outputs", mode="before")
    @classmethod
    def expand_shorthand(cls, value: Any) -> Any:
        """Allow a bare url string in place of an endpoint mapping."""
        if isinstance(value, list):
            return [{"url": item} if isinstance(item, str) else item for item in value]
        return value

    def filter_complex(self) -> str | None:
        """The compiled filter graph, or None without filters."""
        if not self.filters:
            return None
        return filter_graph(item.to_spec() for item in self.filters)

    def to_command(
        self,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        **kwargs: Any,
    ) -> FFmpegCommand:
        """Build the ffmpeg command for this job.

        Args:
            stdin: Stream bound to an input with url ``-``.
            stdout: Stream bound to an output with url ``-``.
            **kwargs: Passed to FFmpegCommand (executable, spawner...).

        Raises:
            JobFileError: If the job sets -filter_complex and also has
                filters, or its options cannot be parsed.
        """
        try:
            global_options = as_option_set(self.global_options)
        except ConfigurationError as e:
            raise JobFileError(f"Invalid global options: {e}") from e

        graph = self.filter_complex()
        if graph is not None:
            if "filter_complex" in global_options:
                raise JobFileError(
                    "Job sets both filters and a filter_complex global option"
                )
            global_options["filter_complex"] = graph

        inputs = [_input(item, stdin) for item in self.inputs]
        outputs = [_output(item, stdout) for item in self.outputs]
        return FFmpegCommand(
            inputs=inputs, outputs=outputs, global_options=global_options, **kwargs
        )


def _input(item: EndpointModel, stdin: BinaryIO | None) -> Input:
    if item.url == "-" and stdin is not None:
        return Input(stdin, item.options)
    return Input(item.url, item.options)


def _output(item: EndpointModel, stdout: BinaryIO | None) -> Output:
    if item.url != "-" or stdout is None:
        return Output(item.url, item.options)
    # The bound stream belongs to the caller and stays open
    try:
        options = as_option_set(item.options)
    except ConfigurationError as e:
        raise JobFileError(f"Invalid output options: {e}") from e
    options["keepopen"] = None
    return Output(stdout, options)


def _format_validation_error(error: ValidationError) -> str:
    """Format a pydantic validation error into a one-line message."""
    errors = error.errors()
    if errors:
        first_error = errors[0]
        loc = ".".join(str(x) for x in first_error.get("loc", []))
        msg = first_error.get("msg", str(error))
        if loc:
            return f"Job validation failed: {loc}: {msg}"
        return f"Job validation failed: {msg}"
    return f"Job validation failed: {error}"


def load_job_from_dict(data: dict[str, Any], path: Path | None = None) -> JobModel:
    """Validate a job from a parsed mapping.

    Raises:
        JobFileError: If the data is not a valid job.
    """
    try:
        return JobModel.model_validate(data)
    except ValidationError as e:
        raise JobFileError(_format_validation_error(e), path) from e


def load_job(path: Path) -> JobModel:
    """Load and validate a job from a YAML file.

    Raises:
        JobFileError: If the file cannot be read or is not a valid job.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise JobFileError(f"Cannot read job file: {e}", path) from e
    except yaml.YAMLError as e:
        raise JobFileError(f"Invalid YAML syntax: {e}", path) from e

    if data is None:
        raise JobFileError("Job file is empty", path)
    if not isinstance(data, dict):
        raise JobFileError("Job file must be a YAML mapping", path)

    logger.debug("Loaded job file %s", path)
    return load_job_from_dict(data, path)
