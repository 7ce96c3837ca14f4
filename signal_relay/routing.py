import os
import pkgutil
from importlib import import_module

from fastapi import APIRouter

from signal_relay.logging import logger

# Router packages, relative to signal_relay, and how they are named in logs
ROUTER_PACKAGES = (
    ("api.http", "api"),
    ("api.ws.consumers", "websocket consumer"),
)

# Modules already announced; the factory may run several times per process
_announced: set[str] = set()


def collect_subrouters() -> APIRouter:
    """
    Builds the application router from every module in `ROUTER_PACKAGES`.

    Each module in `signal_relay/api/http` and `signal_relay/api/ws/consumers`
    must expose a module-level `router`; dropping a new module in either
    package is enough to publish its endpoints.
    """
    main_router = APIRouter()
    pkg_dir = os.path.dirname(__file__)
    pkg_name = os.path.basename(pkg_dir)

    for package, kind in ROUTER_PACKAGES:
        package_path = os.path.join(pkg_dir, *package.split("."))
        for _, module, _ in pkgutil.iter_modules([package_path]):
            qualified = f"{pkg_name}.{package}.{module}"
            main_router.include_router(import_module(qualified).router)

            if qualified not in _announced:
                logger.info(f'Register "{module}" {kind}')
                _announced.add(qualified)

    return main_router
