"""
Simple TCP REPL server for malisp.

Protocol: JSON per line over TCP.
- Request: {"cmd": "eval", "code": "(do ...)"}
- Response: {"ok": true, "result": <printed value>} or {"ok": false, "error": <printed payload>}

The server keeps one Interpreter alive so that definitions persist across
evaluations. Clients are served on threads; evaluations are serialised
through a lock because they share the package registry and environments.
"""

from __future__ import annotations

import json
import logging
import socket
import threading
from typing import Any, Dict, Optional, Tuple

from malisp.config import get_repl_address
from malisp.interpreter import Interpreter
from malisp.printer import pr_str
from malisp.types.nil import Nil
from malisp.types.values import Error

logger = logging.getLogger(__name__)


class ReplServer:
    def __init__(self, host: Optional[str] = None, port: Optional[int] = None, interp: Optional[Interpreter] = None):
        default_host, default_port = get_repl_address()
        self.host = host or default_host
        self.port = port or default_port
        # Keep a single interpreter to maintain session state
        self.interp = interp or Interpreter()
        self._lock = threading.Lock()

    def handle_request(self, req: Any) -> Dict[str, Any]:
        """Transport-independent core: one decoded request in, one response out."""
        if not isinstance(req, dict):
            return {"ok": False, "error": "Invalid request: expected a JSON object"}
        if req.get("cmd") != "eval":
            return {"ok": False, "error": f"Unknown cmd: {req.get('cmd')}"}
        code = req.get("code", "")
        if not isinstance(code, str):
            return {"ok": False, "error": "Invalid request: code must be a string"}
        result = Nil
        with self._lock:
            for result in self.interp.eval_forms(code):
                if isinstance(result, Error):
                    return {"ok": False, "error": pr_str(result.payload, True)}
        return {"ok": True, "result": pr_str(result, True)}

    def serve_forever(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.listen(5)
            logger.info("REPL server listening on %s:%d", self.host, self.port)
            while True:
                conn, addr = s.accept()
                threading.Thread(target=self._handle_client, args=(conn, addr), daemon=True).start()

    def _handle_client(self, conn: socket.socket, addr: Tuple[str, int]):
        logger.debug("client connected: %s:%d", *addr)
        with conn:
            buf = b""
            while True:
                data = conn.recv(4096)
                if not data:
                    break
                buf += data
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        req = json.loads(line.decode("utf-8"))
                    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
                        resp = {"ok": False, "error": f"Invalid request: {ex}"}
                    else:
                        resp = self.handle_request(req)
                    conn.sendall((json.dumps(resp) + "\n").encode("utf-8"))
        logger.debug("client disconnected: %s:%d", *addr)


if __name__ == "__main__":
    from malisp.config import get_log_level

    logging.basicConfig(level=get_log_level())
    ReplServer().serve_forever()
