"""
Browser evasion and side-channel blocking for the rendering strategy.

Everything here is applied per browser context, so each scrape gets its
own spoofed environment.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Dict, Sequence

from playwright.async_api import BrowserContext, Route, WebSocketRoute

logger = logging.getLogger(__name__)

BASE_VIEWPORT = (1920, 1080)
VIEWPORT_JITTER = 100

WEBDRIVER_SCRIPT = "Object.defineProperty(navigator, 'webdriver', { get: () => false });"

CHROME_RUNTIME_SCRIPT = "window.chrome = window.chrome || { runtime: {} };"

LANGUAGES_SCRIPT = "Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });"

PLUGINS_SCRIPT = """
Object.defineProperty(navigator, 'plugins', {
    get: () => [
        { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
        { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai' }
    ]
});
"""

# 37445/37446 are UNMASKED_VENDOR_WEBGL / UNMASKED_RENDERER_WEBGL
WEBGL_SCRIPT = """
(() => {
    const getParameter = WebGLRenderingContext.prototype.getParameter;
    WebGLRenderingContext.prototype.getParameter = function(parameter) {
        if (parameter === 37445) return 'Intel Inc.';
        if (parameter === 37446) return 'Intel Iris OpenGL Engine';
        return getParameter.call(this, parameter);
    };
})();
"""

CANVAS_NOISE_SCRIPT = """
(() => {
    const toDataURL = HTMLCanvasElement.prototype.toDataURL;
    HTMLCanvasElement.prototype.toDataURL = function() {
        const result = toDataURL.apply(this, arguments);
        return result.slice(0, -10) + Math.random().toString(36).slice(2, 12);
    };
})();
"""

BASIC_STEALTH_SCRIPTS: Sequence[str] = (WEBDRIVER_SCRIPT, CHROME_RUNTIME_SCRIPT, LANGUAGES_SCRIPT, PLUGINS_SCRIPT)
FINGERPRINT_SCRIPTS: Sequence[str] = (WEBGL_SCRIPT, CANVAS_NOISE_SCRIPT)

BLOCKED_SCHEMES = ("ws://", "wss://")
BLOCKED_RESOURCE_TYPES = frozenset({"webrtc", "websocket"})

LAUNCH_ARGS: Sequence[str] = ("--disable-blink-features=AutomationControlled",)


def random_viewport(rng: Callable[[], float] = random.random) -> Dict[str, int]:
    """A desktop-sized viewport jittered by up to 100px in each dimension."""
    width, height = BASE_VIEWPORT
    return {
        "width": int(width + rng() * VIEWPORT_JITTER),
        "height": int(height + rng() * VIEWPORT_JITTER),
    }


async def apply_stealth(context: BrowserContext, *, spoof_fingerprint: bool = True) -> None:
    """Register init scripts that mask common automation signals."""
    scripts = list(BASIC_STEALTH_SCRIPTS)
    if spoof_fingerprint:
        scripts.extend(FINGERPRINT_SCRIPTS)
    for script in scripts:
        await context.add_init_script(script=script)


def should_block(url: str, resource_type: str) -> bool:
    return url.startswith(BLOCKED_SCHEMES) or resource_type in BLOCKED_RESOURCE_TYPES


async def _route_request(route: Route) -> None:
    request = route.request
    if should_block(request.url, request.resource_type):
        logger.debug("Blocking side-channel request %s", request.url)
        await route.abort()
        return
    await route.continue_()


async def _refuse_websocket(ws: WebSocketRoute) -> None:
    logger.debug("Refusing WebSocket %s", ws.url)
    await ws.close(code=1008, reason="blocked")


async def block_side_channels(context: BrowserContext) -> None:
    """Abort WebSocket/WebRTC traffic originating from rendered pages."""
    await context.route("**/*", _route_request)
    await context.route_web_socket("**/*", _refuse_websocket)
