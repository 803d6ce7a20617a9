import pathlib

import httpx

TEST_DIR = pathlib.Path(__file__).parent
TEST_DATA_DIR = TEST_DIR / "data"


def load_text_file(path: str, encoding: str = "utf-8") -> str:
    return (TEST_DATA_DIR / path).read_text(encoding=encoding)


class RecordingHandler:
    """``httpx.MockTransport`` handler that records every request.

    Replies with ``status_code`` and ``text``, or raises ``exc`` built
    from the request when one is given.
    """

    def __init__(
        self,
        text: str = "",
        status_code: int = 200,
        exc: type[httpx.TransportError] | None = None,
    ) -> None:
        self.text = text
        self.status_code = status_code
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc("Connection refused", request=request)
        return httpx.Response(self.status_code, text=self.text)
