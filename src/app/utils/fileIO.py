import io


class AsyncBytesIO(io.BytesIO):
    """
    BytesIO wrapper that enables async reading.
    Storage services expect an async file-like object; this wraps in-memory bytes.
    """
    async def read(self, *args, **kwargs):
        return super().read(*args, **kwargs)
