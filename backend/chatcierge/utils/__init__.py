from chatcierge.utils.sse import SSEDecoder, decode_sse, streaming_response
from chatcierge.utils.normalize import embedding_input, one_line, strip_indent

__all__ = ["SSEDecoder", "decode_sse", "streaming_response", "embedding_input", "one_line", "strip_indent"]
