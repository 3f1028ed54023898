import io

import pytest

from timelinegpx import LocationRecord, export_gpx, import_gpx


class CapturingSink(io.BytesIO):
    """BytesIO that keeps its contents once the exporter closes it."""
    captured = b""

    def close(self):
        if not self.closed:
            self.captured = self.getvalue()
        super().close()

    @property
    def text(self) -> str:
        return self.captured.decode("utf-8")


class FailingSink(io.BytesIO):
    """Accepts `limit` writes, then fails like a full disk."""

    def __init__(self, limit: int):
        super().__init__()
        self.limit = limit
        self.writes = 0

    def write(self, data):
        if self.writes >= self.limit:
            raise OSError(28, "No space left on device")
        self.writes += 1
        return super().write(data)


class FullDiskRaw(io.RawIOBase):
    """Raw stream whose every write fails, for wrapping in io.BufferedWriter."""

    def writable(self):
        return True

    def write(self, data):
        raise OSError(28, "No space left on device")


class FailingSource(io.BytesIO):
    """Serves the first chunk of a document, then fails the next read."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            raise OSError(5, "Input/output error")
        return super().read(size)


@pytest.fixture
def sink():
    return CapturingSink()


@pytest.fixture
def records():
    return [
        LocationRecord(11, 1609459200000, 51.5, -0.12),
        LocationRecord(12, 1609459260000, 48.858844, 2.294351),
        LocationRecord(13, 1609459320000, -33.856784, 151.215297),
    ]


@pytest.fixture
def roundtrip():
    def _roundtrip(records, **kwargs):
        out = CapturingSink()
        export_gpx(records, out)
        return import_gpx(io.BytesIO(out.captured), **kwargs)
    return _roundtrip
