"""Sample payload decoding."""

from .sample_decoder import SampleDecoder, SampleFormat, decode_sample

__all__ = ["SampleDecoder", "SampleFormat", "decode_sample"]
