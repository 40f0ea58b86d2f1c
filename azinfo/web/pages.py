"""HTML rendering for the info page."""
from __future__ import annotations

from html import escape

from azinfo.core.clock import format_rfc3339
from azinfo.core.config import Settings
from azinfo.reliability.cache import NodeMetadata

_PAGE = """<!DOCTYPE html>
<html>
<head>
  <title>Pod &amp; Node Info</title>
  <style>
    body {{ font-family: Arial, sans-serif; background-color: #f5f7fa; margin: 0; padding: 0; }}
    .container {{ max-width: 720px; margin: 60px auto; background: #ffffff; padding: 30px 40px;
                  border-radius: 8px; box-shadow: 0 4px 10px rgba(0,0,0,0.1); }}
    h1, h2 {{ margin-bottom: 10px; }}
    ul {{ list-style: none; padding: 0; }}
    li {{ margin: 6px 0; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>Pod &amp; Node Information</h1>

    <h2>Pod</h2>
    <ul>
      <li><strong>Name:</strong> {pod_name}</li>
      <li><strong>Namespace:</strong> {pod_namespace}</li>
      <li><strong>IP:</strong> {pod_ip}</li>
    </ul>

    <h2>Node</h2>
    <ul>
      <li><strong>Name:</strong> {node_name}</li>
      <li><strong>IP:</strong> {node_ip}</li>
      <li><strong>Region:</strong> <span style="color: green;">{region}</span></li>
      <li><strong>Zone:</strong> <span style="color: blue;">{zone}</span></li>
    </ul>

    <h2>Time</h2>
    <ul>
      <li><strong>Server Time (UTC):</strong> <span id="serverTime">{server_time}</span></li>
      <li><strong>Client Time:</strong> <span id="clientTime">loading...</span></li>
      <li><strong>Last AZ Refresh:</strong> {last_update}</li>
      <li><strong>Last AZ Error:</strong> {last_error}</li>
    </ul>
  </div>

  <script>
    document.getElementById("clientTime").innerText = new Date().toISOString();
  </script>
</body>
</html>
"""


def dash_if_empty(value: str) -> str:
    return value or "-"


def render_info_page(meta: NodeMetadata, settings: Settings, server_time: str) -> str:
    values = {
        "pod_name": settings.pod_name,
        "pod_namespace": settings.pod_namespace,
        "pod_ip": settings.pod_ip,
        "node_name": settings.node_name,
        "node_ip": meta.node_ip,
        "region": meta.region,
        "zone": meta.zone,
        "server_time": server_time,
        "last_update": format_rfc3339(meta.last_update),
        "last_error": dash_if_empty(meta.last_error),
    }
    return _PAGE.format(**{k: escape(v) for k, v in values.items()})
