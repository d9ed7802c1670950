"""Tests for decoding and validating the configuration model."""

from __future__ import annotations

import textwrap
from collections.abc import Callable

import msgspec
import pytest

from otelconf.errors import (
    BoundError,
    InvalidError,
    RequiredError,
    UnmarshalError,
    error_matches,
    errors_matching,
)
from otelconf.model import OpenTelemetryConfiguration, TextMapPropagatorEntry
from otelconf.parse import encode_json, encode_yaml, parse_json, parse_yaml

type ParseYaml = Callable[[str], OpenTelemetryConfiguration]


def test_defaults_apply_when_absent(yaml_config: ParseYaml) -> None:
    """Ensure disabled and log_level fall back to their defaults."""
    config = yaml_config("file_format: '1.0'\n")
    assert config.disabled is False
    assert config.log_level == "info"


def test_defaults_apply_when_null(yaml_config: ParseYaml) -> None:
    """Ensure null disabled and log_level fall back to their defaults."""
    config = yaml_config(
        """
        file_format: '1.0'
        disabled:
        log_level:
        """
    )
    assert config.disabled is False
    assert config.log_level == "info"


def test_file_format_is_required(yaml_config: ParseYaml) -> None:
    """Ensure a document without file_format is rejected."""
    with pytest.raises(RequiredError) as excinfo:
        yaml_config("disabled: true\n")
    assert excinfo.value.matches(RequiredError("OpenTelemetryConfiguration", "file_format"))


def test_unknown_log_level_is_invalid(yaml_config: ParseYaml) -> None:
    """Ensure log_level is a closed set."""
    with pytest.raises(InvalidError, match="log_level"):
        yaml_config("file_format: '1.0'\nlog_level: verbose\n")


def test_batch_size_bound(yaml_config: ParseYaml) -> None:
    """Ensure a zero batch size is reported as a bound violation."""
    with pytest.raises(BoundError) as excinfo:
        yaml_config(
            """
            file_format: '1.0'
            tracer_provider:
              processors:
                - batch:
                    max_export_batch_size: 0
                    exporter:
                      console: {}
            """
        )
    assert excinfo.value.matches(BoundError("max_export_batch_size", ">", 0))
    assert str(excinfo.value) == "max_export_batch_size must be greater than 0"


@pytest.mark.parametrize(
    ("field", "value", "op"),
    [
        ("schedule_delay", -1, ">="),
        ("export_timeout", -1, ">="),
        ("max_queue_size", 0, ">"),
        ("max_export_batch_size", 0, ">"),
    ],
)
def test_log_processor_bounds(yaml_config: ParseYaml, field: str, value: int, op: str) -> None:
    """Ensure batch log record processor bounds are enforced."""
    document = f"""
        file_format: '1.0'
        logger_provider:
          processors:
            - batch:
                {field}: {value}
                exporter:
                  console:
        """
    with pytest.raises(BoundError) as excinfo:
        yaml_config(document)
    assert excinfo.value.matches(BoundError(field, op, 0))


def test_zero_durations_are_allowed(yaml_config: ParseYaml) -> None:
    """Ensure zero durations pass the non-negative bound."""
    config = yaml_config(
        """
        file_format: '1.0'
        meter_provider:
          readers:
            - periodic:
                interval: 0
                timeout: 0
                exporter:
                  console:
        """
    )
    assert config.meter_provider is not None
    reader = config.meter_provider.readers[0].variant()
    assert reader is not None
    assert reader[1].interval == 0


def test_multiple_exporters_rejected(yaml_config: ParseYaml) -> None:
    """Ensure a union with two variants is rejected."""
    with pytest.raises(InvalidError) as excinfo:
        yaml_config(
            """
            file_format: '1.0'
            tracer_provider:
              processors:
                - simple:
                    exporter:
                      console: {}
                      otlp_http:
                        endpoint: http://x
            """
        )
    assert error_matches(excinfo.value, InvalidError("must not specify multiple exporters"))


def test_null_variant_selects_defaults(yaml_config: ParseYaml) -> None:
    """Ensure a variant written as a bare key is selected with defaults."""
    config = yaml_config(
        """
        file_format: '1.0'
        tracer_provider:
          processors:
            - batch:
                exporter:
                  otlp_grpc:
        """
    )
    assert config.tracer_provider is not None
    processor = config.tracer_provider.processors[0].variant()
    assert processor is not None
    exporter = processor[1].exporter.variant()
    assert exporter is not None
    name, value = exporter
    assert name == "otlp_grpc"
    assert value.endpoint is None


def test_missing_exporter_is_required(yaml_config: ParseYaml) -> None:
    """Ensure processors require an exporter."""
    with pytest.raises(RequiredError) as excinfo:
        yaml_config(
            """
            file_format: '1.0'
            tracer_provider:
              processors:
                - simple: {}
            """
        )
    assert excinfo.value.matches(RequiredError("SimpleSpanProcessor", "exporter"))


def test_header_value_may_be_null(yaml_config: ParseYaml) -> None:
    """Ensure a null header value decodes while a missing one is required."""
    document = """
        file_format: '1.0'
        tracer_provider:
          processors:
            - simple:
                exporter:
                  otlp_http:
                    headers:
                      - name: api-key
                        {value_line}
        """
    config = yaml_config(document.format(value_line="value: null"))
    assert config.tracer_provider is not None
    processor = config.tracer_provider.processors[0].variant()
    assert processor is not None
    exporter = processor[1].exporter.variant()
    assert exporter is not None
    assert exporter[1].headers[0].value is None

    with pytest.raises(RequiredError) as excinfo:
        yaml_config(document.format(value_line="# no value"))
    assert error_matches(excinfo.value, RequiredError("NameStringValuePair", "value"))


def test_sibling_errors_are_joined(yaml_config: ParseYaml) -> None:
    """Ensure failures from sibling nodes are all reported."""
    with pytest.raises(ExceptionGroup) as excinfo:
        yaml_config(
            """
            file_format: '1.0'
            tracer_provider:
              processors:
                - batch:
                    max_queue_size: 0
                    exporter:
                      console:
                - batch:
                    schedule_delay: -5
                    exporter:
                      console:
            meter_provider:
              views:
                - selector:
                    instrument_type: timer
            """
        )
    assert len(errors_matching(excinfo.value, BoundError)) == 2
    assert error_matches(excinfo.value, BoundError("max_queue_size", ">", 0))
    assert error_matches(excinfo.value, BoundError("schedule_delay", ">=", 0))
    assert error_matches(excinfo.value, InvalidError("instrument_type"))


@pytest.mark.parametrize(
    ("document", "identifier"),
    [
        (
            """
            meter_provider:
              readers:
                - periodic:
                    exporter:
                      otlp_http:
                        temporality_preference: sometimes
            """,
            "temporality_preference",
        ),
        (
            """
            meter_provider:
              readers:
                - pull:
                    exporter:
                      prometheus/development:
                        translation_strategy: Mangle
            """,
            "translation_strategy",
        ),
        (
            """
            resource:
              attributes:
                - name: a
                  value: 1
                  type: number
            """,
            "attribute type",
        ),
    ],
)
def test_closed_enums(document: str, identifier: str) -> None:
    """Ensure enum fields reject unknown values."""
    with pytest.raises(InvalidError) as excinfo:
        parse_yaml("file_format: '1.0'\n" + textwrap.dedent(document))
    assert error_matches(excinfo.value, InvalidError(identifier))


def test_include_exclude_conflict(yaml_config: ParseYaml) -> None:
    """Ensure a key cannot be both included and excluded."""
    with pytest.raises(InvalidError, match="both include and exclude"):
        yaml_config(
            """
            file_format: '1.0'
            meter_provider:
              views:
                - selector:
                    instrument_name: requests
                  stream:
                    attribute_keys:
                      included: [a, b]
                      excluded: [b]
            """
        )


def test_wrong_shape_is_unmarshal_error(yaml_config: ParseYaml) -> None:
    """Ensure a structurally wrong value raises an unmarshal error."""
    with pytest.raises(UnmarshalError):
        yaml_config(
            """
            file_format: '1.0'
            tracer_provider:
              processors: not-a-list
            """
        )


def test_non_mapping_document_is_unmarshal_error() -> None:
    """Ensure a document that is not a mapping is rejected."""
    with pytest.raises(UnmarshalError):
        parse_yaml(b"- a\n- b\n")


def test_json_integer_coercion() -> None:
    """Ensure int-typed attributes decoded as floats are cast back to int."""
    config = parse_json(
        b'{"file_format": "1.0", "resource": {"attributes": ['
        b'{"name": "a", "value": 3.0, "type": "int"},'
        b'{"name": "b", "value": [1.0, 2.0], "type": "int_array"}]}}'
    )
    assert config.resource is not None
    values = {entry.name: entry.value for entry in config.resource.attributes}
    assert values["a"] == 3
    assert isinstance(values["a"], int)
    assert values["b"] == [1, 2]


def test_propagator_unknown_names_are_preserved() -> None:
    """Ensure unknown propagator keys land in additional_properties."""
    entry = TextMapPropagatorEntry.from_mapping({"custom": None})
    assert entry.additional_properties == {"custom": None}
    assert entry.variant() == ("custom", {})


def test_unknown_top_level_keys_are_ignored(yaml_config: ParseYaml) -> None:
    """Ensure keys outside the model are tolerated."""
    config = yaml_config("file_format: '1.0'\nsomething_new: {a: 1}\n")
    assert config.file_format == "1.0"


def test_timestamp_like_values_stay_strings(yaml_config: ParseYaml) -> None:
    """Ensure date-like scalars are not converted to datetimes."""
    config = yaml_config("file_format: 2024-01-01\n")
    assert config.file_format == "2024-01-01"


@pytest.mark.parametrize("word", ["yes", "off", "On", "1:30"])
def test_yaml11_words_stay_strings(yaml_config: ParseYaml, word: str) -> None:
    """Ensure YAML 1.1 boolean and base-60 forms decode as plain strings."""
    config = yaml_config(
        f"""
        file_format: '1.0'
        resource:
          attributes:
            - name: deployment.flag
              value: {word}
        """
    )
    assert config.resource is not None
    assert config.resource.attributes[0].value == word


def test_substituted_host_stays_string(
    yaml_config: ParseYaml,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure an environment value such as ``on`` decodes into a string field."""
    monkeypatch.setenv("PROM_HOST", "on")
    config = yaml_config(
        """
        file_format: '1.0'
        meter_provider:
          readers:
            - pull:
                exporter:
                  prometheus/development:
                    host: ${PROM_HOST}
                    port: 9464
        """
    )
    assert config.meter_provider is not None
    reader = config.meter_provider.readers[0].variant()
    assert reader is not None
    exporter = reader[1].exporter.variant()
    assert exporter is not None
    assert exporter[1].host == "on"


_FULL_DOCUMENT = """
file_format: '1.0'
log_level: debug
attribute_limits:
  attribute_count_limit: 64
resource:
  schema_url: https://opentelemetry.io/schemas/1.26.0
  attributes:
    - name: service.name
      value: checkout
    - name: ports
      value: [80, 443]
      type: int_array
  attributes_list: team=payments
propagator:
  composite:
    - tracecontext:
    - baggage: {}
tracer_provider:
  sampler:
    parent_based:
      root:
        trace_id_ratio_based:
          ratio: 0.25
  processors:
    - batch:
        schedule_delay: 500
        exporter:
          otlp_http:
            endpoint: http://localhost:4318/v1/traces
            headers:
              - name: api-key
                value: secret
meter_provider:
  exemplar_filter: trace_based
  readers:
    - periodic:
        interval: 1000
        exporter:
          console:
  views:
    - selector:
        instrument_name: http.server.duration
      stream:
        aggregation:
          explicit_bucket_histogram:
            boundaries: [0.0, 5.0, 10.0]
logger_provider:
  processors:
    - simple:
        exporter:
          console:
"""


def test_json_round_trip_is_stable() -> None:
    """Ensure decode, encode and decode again yields an equal model."""
    config = parse_yaml(_FULL_DOCUMENT)
    again = parse_json(encode_json(config))
    assert again == config
    assert msgspec.json.decode(encode_json(config, pretty=True)) == msgspec.json.decode(
        encode_json(again)
    )


def test_yaml_round_trip_is_stable() -> None:
    """Ensure the YAML encoding decodes back to an equal model."""
    config = parse_yaml(_FULL_DOCUMENT)
    assert parse_yaml(encode_yaml(config)) == config
