from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, Optional

import requests

from .api.audio import Audio
from .api.cached_content import CachedContent
from .api.embeddings import DEFAULT_EMBEDDING_MODEL, Embeddings
from .api.files import Files
from .api.images import Images
from .api.models import Models
from .config import Config
from .conversation.messages import Messages
from .conversation.runs import Runs
from .conversation.store import ConversationStore
from .conversation.threads import Threads
from .errors import ArgumentError
from .response import Response
from .services.content import format_content
from .services.http import Transport
from .services.streaming import DeltaCallback, StreamAccumulator, StreamDelta, iter_deltas, run_streaming

log = logging.getLogger(__name__)

Payload = Dict[str, Any]


class Client:
    """
    Gemini REST client with OpenAI-flavoured helpers.

        client = Client()                       # GEMINI_API_KEY from env / .env
        print(client.generate_content("Hi").text)

        client.generate_content_stream("Tell me a story",
                                       lambda text, raw: print(text, end=""))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        store: Optional[ConversationStore] = None,
        **config: Any,
    ) -> None:
        self.config = Config.from_env(api_key=api_key, **config)
        self.transport = Transport(self.config, session=session)
        self.store = store if store is not None else ConversationStore()

        self.threads = Threads(self.store, default_model=self.config.default_model)
        self.messages = Messages(self.store, self.threads)
        self.runs = Runs(self.store, self.threads, self.messages, client=self)

        self.files = Files(self.transport)
        self.models = Models(self.transport)
        self.embeddings_api = Embeddings(self.transport)
        self.audio = Audio(self.transport)
        self.images = Images(self.transport)
        self.cached_content = CachedContent(self.transport, self.files)

    @property
    def api_key(self) -> str:
        return self.config.api_key

    def add_headers(self, headers: Dict[str, Any]) -> None:
        self.transport.add_headers(headers)

    def reset_headers(self) -> None:
        self.transport.reset_headers()

    # -- raw transport passthroughs -----------------------------------------

    def get(self, path: str, parameters: Optional[Dict[str, Any]] = None) -> Any:
        return self.transport.get(path, params=parameters)

    def json_post(self, path: str, parameters: Optional[Payload] = None,
                  query_parameters: Optional[Dict[str, Any]] = None) -> Any:
        return self.transport.json_post(path, parameters, query_parameters)

    def delete(self, path: str) -> Any:
        return self.transport.delete(path)

    # -- generation ---------------------------------------------------------

    def chat(self, parameters: Optional[Payload] = None, stream: Optional[DeltaCallback] = None) -> Payload:
        """
        generateContent with a raw request body.

        With ``stream``, calls ``stream(text, raw_event)`` per SSE event and
        returns the final payload holding the accumulated text.
        """
        params = dict(parameters or {})
        model = params.pop("model", None) or self.config.default_model
        if callable(params.get("stream")):
            stream = stream or params.pop("stream")
        params.pop("stream", None)

        if stream is None:
            return self.transport.json_post(f"models/{model}:generateContent", params)

        try:
            return run_streaming(self.transport.stream(f"models/{model}:streamGenerateContent", params), stream)
        except Exception as e:
            if self.config.log_errors:
                log.warning("Streaming error: %s", e)
            raise

    completions = chat

    def embeddings(self, parameters: Optional[Payload] = None) -> Any:
        params = dict(parameters or {})
        model = params.pop("model", None) or DEFAULT_EMBEDDING_MODEL
        return self.transport.json_post(f"models/{model}:embedContent", params)

    def _build_request(
        self,
        prompt: Any,
        model: Optional[str],
        system_instruction: Any,
        response_mime_type: Optional[str],
        response_schema: Optional[Dict[str, Any]],
        parameters: Dict[str, Any],
    ) -> Payload:
        body: Payload = {
            "contents": [format_content(prompt)],
            "model": model or self.config.default_model,
        }
        if system_instruction:
            body["system_instruction"] = format_content(system_instruction)

        generation_config = dict(parameters.pop("generation_config", None)
                                 or parameters.pop("generationConfig", None) or {})
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        if response_schema:
            generation_config["responseSchema"] = response_schema
            generation_config.setdefault("responseMimeType", "application/json")
        if generation_config:
            body["generationConfig"] = generation_config

        body.update(parameters)
        return body

    def generate_content(
        self,
        prompt: Any,
        model: Optional[str] = None,
        system_instruction: Any = None,
        response_mime_type: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        stream: Optional[DeltaCallback] = None,
        **parameters: Any,
    ) -> Response:
        body = self._build_request(prompt, model, system_instruction,
                                   response_mime_type, response_schema, parameters)
        return Response(self.chat(parameters=body, stream=stream))

    def generate_content_stream(
        self,
        prompt: Any,
        on_delta: Optional[DeltaCallback] = None,
        model: Optional[str] = None,
        system_instruction: Any = None,
        **parameters: Any,
    ) -> Response:
        if on_delta is None:
            raise ArgumentError("Streaming requires a callback", code="missing_callback")
        return self.generate_content(prompt, model=model, system_instruction=system_instruction,
                                     stream=on_delta, **parameters)

    def stream_content(
        self,
        prompt: Any,
        model: Optional[str] = None,
        system_instruction: Any = None,
        accumulator: Optional[StreamAccumulator] = None,
        **parameters: Any,
    ) -> Iterator[StreamDelta]:
        """
        Pull-style streaming: lazily yields ``StreamDelta(text, raw)``.

        Pass an ``accumulator`` to read the joined text or final payload once
        iteration ends. Nothing is sent until the first ``next()``.
        """
        body = self._build_request(prompt, model, system_instruction, None, None, parameters)
        name = body.pop("model")
        events = self.transport.stream(f"models/{name}:streamGenerateContent", body)
        return iter_deltas(events, accumulator)

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} uri_base={self.config.uri_base!r} "
                f"api_key=[REDACTED] extra_headers=[REDACTED]>")
