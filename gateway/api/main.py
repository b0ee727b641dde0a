"""
Minimal interactive terminal client for the gateway.

Architectural role:
- Provides a terminal-only interface over the same normalizer and model adapter
  used by the HTTP routes.

Interface responsibilities:
- Accept stdin prompts and render model output to stdout.
- Attach local files through `/image`, `/audio`, `/document` commands.

Request lifecycle (per user turn):
1. Read a single line from stdin.
2. Handle `exit`/`quit`.
3. Parse attachment commands into modality + local path + optional prompt.
4. Normalize, call the model, print the reply.

Input validation behavior:
- Empty input is ignored and does not call the model.
- Attachment commands without a path print a usage hint.

Error handling strategy:
- Gateway errors print their message; the loop continues.
- EOF and keyboard interrupts end the session without traceback output.

Side effects:
- Reads local files named in commands. Never deletes them.
"""

import mimetypes
import sys

from gateway import config
from gateway.errors import GatewayError
from gateway.llm.service import ModelAdapter
from gateway.normalizer import normalize
from gateway.payload import FileHandle, Modality


# =========================================================
# UTF-8 SAFE STDOUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError):
        pass


ATTACHMENT_COMMANDS = {
    "/image": Modality.IMAGE,
    "/audio": Modality.AUDIO,
    "/document": Modality.DOCUMENT,
}


def parse_command(line: str):
    """
    Split one input line into `(modality, file_handle, prompt)`.

    `/image <path> [prompt]` and friends attach a local file; anything else is a
    text prompt. Returns `file_handle=None` when an attachment command has no path.
    """
    head, _, rest = line.partition(" ")
    modality = ATTACHMENT_COMMANDS.get(head.lower())
    if modality is None:
        return Modality.TEXT, None, line

    path, _, prompt = rest.strip().partition(" ")
    if not path:
        return modality, None, None

    mime_type, _ = mimetypes.guess_type(path)
    return modality, FileHandle(path=path, mime_type=mime_type), prompt.strip() or None


def run_turn(adapter, line: str) -> str:
    """Normalize one input line and return the model's reply."""
    modality, file_handle, prompt = parse_command(line)
    payload = normalize(modality, prompt, file_handle)
    return adapter.generate(payload)


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main(adapter=None, read_line=input):
    """
    Run the interactive terminal session.

    Args:
        adapter: Model adapter; a default `ModelAdapter` when omitted.
        read_line: Prompt reader, `input` by default.
    """
    adapter = adapter or ModelAdapter()

    print(f"Gateway terminal started (model: {config.GEMINI_MODEL}). Type 'exit' to quit.\n")
    print("Attach files with /image, /audio or /document <path> [prompt]")
    print("-" * 60)

    while True:

        try:
            line = read_line("Prompt: ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        try:
            response = run_turn(adapter, line)
        except GatewayError as e:
            print(f"Error: {e}")
            continue

        print("\nResponse:\n")
        print(response)
        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
