#!/usr/bin/env python3
"""Chat with a local Ollama model, forwarding tool calls to an MCP server."""

import sys

from chat.cli import main

if __name__ == "__main__":
    sys.exit(main())
