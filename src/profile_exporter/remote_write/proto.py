"""
Protobuf message classes for the Prometheus remote-write protocol.

The messages are declared from a FileDescriptorProto at import time instead
of being generated by protoc; the wire format is that of prometheus/prompb
`WriteRequest`, `TimeSeries`, `Label` and `Sample`.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from ..models.samples import METRIC_NAME_LABEL, WriteBatch

_F = descriptor_pb2.FieldDescriptorProto

_pool = descriptor_pool.DescriptorPool()


def _add_field(message, name, number, field_type, repeated=False, type_name=None):
    field = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = type_name


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="profile_exporter/prometheus/remote.proto",
        package="prometheus",
        syntax="proto3",
    )

    sample = file_proto.message_type.add(name="Sample")
    _add_field(sample, "value", 1, _F.TYPE_DOUBLE)
    _add_field(sample, "timestamp", 2, _F.TYPE_INT64)

    label = file_proto.message_type.add(name="Label")
    _add_field(label, "name", 1, _F.TYPE_STRING)
    _add_field(label, "value", 2, _F.TYPE_STRING)

    series = file_proto.message_type.add(name="TimeSeries")
    _add_field(series, "labels", 1, _F.TYPE_MESSAGE, repeated=True, type_name=".prometheus.Label")
    _add_field(series, "samples", 2, _F.TYPE_MESSAGE, repeated=True, type_name=".prometheus.Sample")

    request = file_proto.message_type.add(name="WriteRequest")
    _add_field(request, "timeseries", 1, _F.TYPE_MESSAGE, repeated=True,
               type_name=".prometheus.TimeSeries")
    request.reserved_range.add(start=2, end=3)

    return file_proto


_pool.AddSerializedFile(_build_file().SerializeToString())

Sample = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.Sample"))
Label = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.Label"))
TimeSeries = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.TimeSeries"))
WriteRequest = message_factory.GetMessageClass(_pool.FindMessageTypeByName("prometheus.WriteRequest"))


def build_write_request(batch: WriteBatch):
    """
    Convert a write batch into a WriteRequest message.

    Each sample becomes its own time series whose first label is
    `__name__`, followed by the sample's labels in insertion order.
    """
    request = WriteRequest()
    for sample in batch:
        series = request.timeseries.add()
        series.labels.add(name=METRIC_NAME_LABEL, value=sample.metric)
        for name, value in sample.labels.items():
            series.labels.add(name=name, value=value)
        series.samples.add(value=sample.value, timestamp=sample.timestamp_ms)
    return request
