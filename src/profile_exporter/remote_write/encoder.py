"""
Remote-write payload encoding.

A write batch is serialized as a protobuf WriteRequest and compressed with
the snappy block format (not the framed stream format), as required by the
remote-write protocol.
"""

import logging

import cramjam
from google.protobuf.message import EncodeError as ProtobufEncodeError

from ..models.samples import WriteBatch
from ..validation import EncodeError
from .proto import build_write_request

logger = logging.getLogger(__name__)

INITIAL_BUFFER_SIZE = 1024


class WriteEncoder:
    """
    Serialize and compress write batches.

    The compressed output is produced in a scratch buffer owned by the
    encoder. The buffer is kept between calls and only ever grows, so an
    encoder must not be used by two cycles at the same time.
    """

    def __init__(self, initial_size: int = INITIAL_BUFFER_SIZE):
        self._buffer = bytearray(initial_size)

    @property
    def buffer_size(self) -> int:
        return len(self._buffer)

    def encode(self, batch: WriteBatch) -> bytes:
        """
        Encode a batch into a snappy-compressed WriteRequest.

        Raises:
            EncodeError: If serialization or compression fails
        """
        try:
            serialized = build_write_request(batch).SerializeToString()
        except (ProtobufEncodeError, ValueError, TypeError) as e:
            raise EncodeError(f"failed to serialize write request: {e}") from e

        # compress_raw_into fails on short output buffers; grow to the worst case first.
        max_len = cramjam.snappy.compress_raw_max_len(serialized)
        if len(self._buffer) < max_len:
            logger.debug(f"Growing encoder buffer from {len(self._buffer)} to {max_len} bytes")
            self._buffer = bytearray(max_len)

        try:
            written = cramjam.snappy.compress_raw_into(serialized, self._buffer)
        except cramjam.CompressionError as e:
            raise EncodeError(f"failed to compress write request: {e}") from e

        # One copy out of the scratch buffer.
        with memoryview(self._buffer)[:written] as view:
            return bytes(view)
