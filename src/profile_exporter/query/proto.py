"""
Protobuf message classes for the subset of Parca's query API used here.

Only the fields needed for a merge query returning an Arrow table are
declared; unknown fields in responses are skipped by the protobuf runtime.
Field numbers follow parca/query/v1alpha1/query.proto.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, timestamp_pb2

QUERY_METHOD = "/parca.query.v1alpha1.QueryService/Query"

MODE_MERGE = 2
REPORT_TYPE_TABLE_ARROW = 7

_F = descriptor_pb2.FieldDescriptorProto

_pool = descriptor_pool.DescriptorPool()


def _add_field(message, name, number, field_type, type_name=None, oneof_index=None):
    field = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_F.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = type_name
    if oneof_index is not None:
        field.oneof_index = oneof_index


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="profile_exporter/parca/query.proto",
        package="parca.query.v1alpha1",
        syntax="proto3",
        dependency=["google/protobuf/timestamp.proto"],
    )

    merge = file_proto.message_type.add(name="MergeProfile")
    _add_field(merge, "query", 1, _F.TYPE_STRING)
    _add_field(merge, "start", 2, _F.TYPE_MESSAGE, ".google.protobuf.Timestamp")
    _add_field(merge, "end", 3, _F.TYPE_MESSAGE, ".google.protobuf.Timestamp")

    request = file_proto.message_type.add(name="QueryRequest")
    request.oneof_decl.add(name="options")
    _add_field(request, "mode", 1, _F.TYPE_INT32)
    _add_field(request, "merge", 3, _F.TYPE_MESSAGE, ".parca.query.v1alpha1.MergeProfile",
               oneof_index=0)
    _add_field(request, "report_type", 5, _F.TYPE_INT32)

    table = file_proto.message_type.add(name="TableArrow")
    _add_field(table, "record", 1, _F.TYPE_BYTES)
    _add_field(table, "unit", 2, _F.TYPE_STRING)

    response = file_proto.message_type.add(name="QueryResponse")
    response.oneof_decl.add(name="report")
    _add_field(response, "total", 9, _F.TYPE_INT64)
    _add_field(response, "filtered", 10, _F.TYPE_INT64)
    _add_field(response, "table_arrow", 13, _F.TYPE_MESSAGE, ".parca.query.v1alpha1.TableArrow",
               oneof_index=0)

    return file_proto


def _register() -> None:
    timestamp_file = descriptor_pb2.FileDescriptorProto()
    timestamp_pb2.DESCRIPTOR.CopyToProto(timestamp_file)
    _pool.AddSerializedFile(timestamp_file.SerializeToString())
    _pool.AddSerializedFile(_build_file().SerializeToString())


_register()

MergeProfile = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("parca.query.v1alpha1.MergeProfile"))
QueryRequest = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("parca.query.v1alpha1.QueryRequest"))
TableArrow = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("parca.query.v1alpha1.TableArrow"))
QueryResponse = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName("parca.query.v1alpha1.QueryResponse"))
