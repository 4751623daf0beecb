"""Pre-vetted server names served in allow-list mode.

Order is the pagination index space: an allow-list cursor is an offset into
this tuple, so entries are appended, never re-sorted.
"""

from __future__ import annotations

ALLOWED_SERVERS: tuple[str, ...] = (
    "ai.exa/exa",
    "ai.smithery/brave",
    "app.linear/linear",
    "com.atlassian/atlassian-mcp-server",
    "com.cloudflare/docs",
    "com.figma/figma-dev-mode",
    "com.notion/mcp",
    "com.paypal/mcp",
    "com.sentry/mcp",
    "com.stripe/mcp",
    "com.supabase/mcp",
    "com.vercel/vercel-mcp",
    "io.github.github/github-mcp-server",
    "io.github.upstash/context7",
    "io.neon/mcp-server-neon",
    "io.zapier/mcp",
    "net.hubspot/mcp",
)
