"""Operator console endpoints behind a shared password."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response

from badge_relay.api.models import AutoDispatchRequest  # noqa: TC001
from badge_relay.domain.photos import PhotoFilter, PhotoRecord
from badge_relay.services.photos import PhotoNotFoundError

if TYPE_CHECKING:
    from badge_relay.containers import AppContainer

router = APIRouter(prefix="/console", tags=["console"])

_logger = logging.getLogger(__name__)


def _get_console_password(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.console_password


async def require_operator(
    x_console_password: str | None = Header(default=None),
    console_password: str = Depends(_get_console_password),
) -> None:
    """Ensure requests include the console password."""
    if not x_console_password or x_console_password != console_password:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _load_photo(container: AppContainer, photo_id: str) -> PhotoRecord:
    try:
        return container.photo_service.get_photo(photo_id)
    except PhotoNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc


@router.get("/photos", dependencies=[Depends(require_operator)])
async def list_photos(
    request: Request,
    filter: PhotoFilter = PhotoFilter.PENDING,  # noqa: A002
    search: str | None = None,
) -> dict[str, object]:
    """Return photos for the console list."""
    photos = _container(request).photo_service.list_photos(filter, search)
    return {
        "filter": filter.value,
        "photos": [serialize_photo(photo) for photo in photos],
    }


@router.post("/photos/{photo_id}/processed", dependencies=[Depends(require_operator)])
async def mark_processed(photo_id: str, request: Request) -> dict[str, object]:
    """Flag a photo as processed."""
    container = _container(request)
    try:
        photo = container.photo_service.mark_processed(photo_id)
    except PhotoNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    return serialize_photo(photo)


@router.get("/photos/{photo_id}/link", dependencies=[Depends(require_operator)])
async def photo_link(photo_id: str, request: Request) -> dict[str, str]:
    """Return a usable URL for the photo, signing storage paths."""
    container = _container(request)
    photo = _load_photo(container, photo_id)
    url = await container.target_resolver.resolve_photo_url(photo)
    return {"photo_id": photo.id, "url": url}


@router.get("/photos/{photo_id}/download", dependencies=[Depends(require_operator)])
async def download_photo(photo_id: str, request: Request) -> Response:
    """Return the photo file as an attachment."""
    container = _container(request)
    photo = _load_photo(container, photo_id)
    url = await container.target_resolver.resolve_photo_url(photo)
    try:
        content = await container.photo_downloader.download(url)
    except httpx.HTTPError as exc:
        _logger.warning("Photo download failed: photo_id=%s", photo_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="Download failed"
        ) from exc
    return Response(
        content=content,
        media_type="image/jpeg",
        headers={
            "Content-Disposition": f'attachment; filename="badge_photo_{photo.id}.jpg"'
        },
    )


@router.post("/photos/{photo_id}/dispatch", dependencies=[Depends(require_operator)])
async def dispatch_photo(photo_id: str, request: Request) -> dict[str, str]:
    """Open a photo in the badge generator in a new tab."""
    container = _container(request)
    photo = _load_photo(container, photo_id)
    outcome = await container.dispatch_controller.dispatch_manually(photo)
    return {"photo_id": photo.id, "outcome": outcome.value}


@router.get("/dispatch", dependencies=[Depends(require_operator)])
async def dispatch_state(request: Request) -> dict[str, object]:
    """Return the auto-dispatch state."""
    controller = _container(request).dispatch_controller
    await controller.probe_tab()
    return _serialize_dispatch(request)


@router.put("/dispatch/auto", dependencies=[Depends(require_operator)])
async def set_auto_dispatch(
    payload: AutoDispatchRequest, request: Request
) -> dict[str, object]:
    """Switch auto-dispatch on or off."""
    await _container(request).dispatch_controller.set_auto_dispatch(payload.enabled)
    return _serialize_dispatch(request)


@router.post("/dispatch/arm", dependencies=[Depends(require_operator)])
async def arm_dispatch(request: Request) -> dict[str, object]:
    """Open the reusable badge generator tab."""
    outcome = await _container(request).dispatch_controller.arm()
    return {"outcome": outcome.value, **_serialize_dispatch(request)}


@router.post("/dispatch/disarm", dependencies=[Depends(require_operator)])
async def disarm_dispatch(request: Request) -> dict[str, object]:
    """Close the reusable badge generator tab."""
    await _container(request).dispatch_controller.disarm()
    return _serialize_dispatch(request)


@router.get("/notices", dependencies=[Depends(require_operator)])
async def list_notices(request: Request, after: int = 0) -> dict[str, object]:
    """Return notices newer than `after`."""
    board = _container(request).notice_board
    return {
        "last": board.last_sequence,
        "notices": [
            {
                "seq": seq,
                "kind": notice.kind.value,
                "title": notice.title,
                "message": notice.message,
                "severity": notice.severity,
                "sound": notice.sound,
                "created_at": notice.created_at.isoformat(),
            }
            for seq, notice in board.since(after)
        ],
    }


@router.get("/ui", response_class=HTMLResponse)
async def console_ui() -> HTMLResponse:
    """Minimal console page that consumes the console API."""
    return HTMLResponse(_CONSOLE_UI_HTML)


def serialize_photo(photo: PhotoRecord) -> dict[str, object]:
    """Return the JSON shape of a photo."""
    return {
        "id": photo.id,
        "file_url": photo.file_url,
        "file_path": photo.file_path,
        "name": photo.name,
        "role": photo.role,
        "processed": photo.processed,
        "created_at": photo.created_at.isoformat() if photo.created_at else None,
    }


def _serialize_dispatch(request: Request) -> dict[str, object]:
    controller = _container(request).dispatch_controller
    return {
        "mode": controller.mode.value,
        "auto_dispatch_enabled": controller.auto_dispatch_enabled,
        "armed": controller.armed,
        "dispatched_count": len(controller.dispatched_ids),
    }


_CONSOLE_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Badge Relay Console</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      button.active { font-weight: bold; }
      table { border-collapse: collapse; width: 100%; }
      td, th { border-bottom: 1px solid #ddd; padding: 0.4rem; text-align: left; }
      img { width: 64px; height: 64px; object-fit: cover; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Badge Relay Console</h1>
    <div class="row">
      <label>Console password</label><br />
      <input id="password" type="password" placeholder="X-Console-Password" />
    </div>
    <div class="row">
      <span id="mode">Auto-dispatch: unknown</span>
      <button onclick="toggle(true)">Auto on</button>
      <button onclick="toggle(false)">Auto off</button>
      <button onclick="dispatchCall('POST', '/console/dispatch/arm')">Arm</button>
      <button onclick="dispatchCall('POST', '/console/dispatch/disarm')">
        Disarm
      </button>
    </div>
    <div class="row">
      <button data-filter="pending" class="active" onclick="setFilter(this)">
        Pending
      </button>
      <button data-filter="processed" onclick="setFilter(this)">Processed</button>
      <button data-filter="all" onclick="setFilter(this)">All</button>
      <input id="search" placeholder="Search by file name" oninput="loadPhotos()" />
    </div>
    <table>
      <thead>
        <tr><th></th><th>File</th><th>Created</th><th>Actions</th></tr>
      </thead>
      <tbody id="photos"></tbody>
    </table>
    <pre id="output">Ready.</pre>
    <pre id="notices"></pre>
    <script>
      let lastNotice = 0;
      let filter = 'pending';
      function headers() {
        return {
          'X-Console-Password': document.getElementById('password').value,
          'Content-Type': 'application/json'
        };
      }
      async function call(method, path, body) {
        const output = document.getElementById('output');
        const res = await fetch(path, {
          method, headers: headers(), body: body && JSON.stringify(body)
        });
        if (!res.ok) {
          output.textContent = 'Error: ' + res.status;
          return null;
        }
        const data = await res.json();
        output.textContent = JSON.stringify(data, null, 2);
        return data;
      }
      async function dispatchCall(method, path, body) {
        const data = await call(method, path, body);
        if (data) {
          document.getElementById('mode').textContent =
            'Auto-dispatch: ' + data.mode;
        }
      }
      function toggle(enabled) {
        dispatchCall('PUT', '/console/dispatch/auto', { enabled });
      }
      function setFilter(button) {
        filter = button.dataset.filter;
        for (const b of document.querySelectorAll('button[data-filter]')) {
          b.classList.toggle('active', b === button);
        }
        loadPhotos();
      }
      function photoPath(id, action) {
        return '/console/photos/' + encodeURIComponent(id) + '/' + action;
      }
      async function loadPhotos() {
        const search = document.getElementById('search').value;
        const query = '?filter=' + filter + '&search=' + encodeURIComponent(search);
        const res = await fetch('/console/photos' + query, { headers: headers() });
        if (!res.ok) return;
        const data = await res.json();
        const body = document.getElementById('photos');
        body.innerHTML = '';
        for (const photo of data.photos) {
          const row = document.createElement('tr');
          const img = document.createElement('td');
          const file = document.createElement('td');
          const created = document.createElement('td');
          const actions = document.createElement('td');
          const thumb = document.createElement('img');
          thumb.src = photo.file_url || '';
          img.appendChild(thumb);
          file.textContent = photo.file_path || photo.file_url || photo.id;
          created.textContent = photo.created_at || '';
          actions.appendChild(action('Generate badge', () => dispatchPhoto(photo.id)));
          actions.appendChild(action('Copy link', () => copyLink(photo.id)));
          actions.appendChild(action('Download', () => download(photo.id)));
          if (!photo.processed) {
            const done = () => markProcessed(photo.id);
            actions.appendChild(action('Mark processed', done));
          }
          row.append(img, file, created, actions);
          body.appendChild(row);
        }
      }
      function action(label, handler) {
        const button = document.createElement('button');
        button.textContent = label;
        button.onclick = handler;
        return button;
      }
      async function dispatchPhoto(id) {
        await call('POST', photoPath(id, 'dispatch'));
      }
      async function markProcessed(id) {
        if (await call('POST', photoPath(id, 'processed'))) loadPhotos();
      }
      async function copyLink(id) {
        const data = await call('GET', photoPath(id, 'link'));
        if (data) await navigator.clipboard.writeText(data.url);
      }
      async function download(id) {
        const res = await fetch(photoPath(id, 'download'), { headers: headers() });
        if (!res.ok) {
          document.getElementById('output').textContent = 'Error: ' + res.status;
          return;
        }
        const link = document.createElement('a');
        link.href = URL.createObjectURL(await res.blob());
        link.download = 'badge_photo_' + id + '.jpg';
        link.click();
        URL.revokeObjectURL(link.href);
      }
      function beep() {
        const ctx = new (window.AudioContext || window.webkitAudioContext)();
        const osc = ctx.createOscillator();
        const gain = ctx.createGain();
        osc.connect(gain);
        gain.connect(ctx.destination);
        osc.frequency.value = 800;
        gain.gain.setValueAtTime(0.3, ctx.currentTime);
        gain.gain.exponentialRampToValueAtTime(0.01, ctx.currentTime + 0.5);
        osc.start(ctx.currentTime);
        osc.stop(ctx.currentTime + 0.5);
      }
      async function poll() {
        const res = await fetch('/console/notices?after=' + lastNotice, {
          headers: headers()
        });
        if (!res.ok) return;
        const data = await res.json();
        const log = document.getElementById('notices');
        let received = false;
        for (const notice of data.notices) {
          log.textContent = notice.title + ': ' + notice.message + '\\n'
            + log.textContent;
          if (notice.sound) beep();
          if (notice.kind === 'photo_received') received = true;
        }
        lastNotice = data.last;
        if (received) loadPhotos();
      }
      setInterval(poll, 2000);
    </script>
  </body>
</html>
"""
