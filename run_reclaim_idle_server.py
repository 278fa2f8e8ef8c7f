# run_reclaim_idle_server.py
import argparse
import logging
import uvicorn
from kubernetes import config
from kubernetes.config.config_exception import ConfigException

from reclaim_idle.api import server
from reclaim_idle.config import Settings

logging.basicConfig(level=logging.INFO)
log = logging.getLogger("launcher")

def load_kube_config(settings: Settings) -> None:
    """
    In-cluster config first, then ~/.kube/config.
    In development mode prometheus is on localhost, so a missing config is not fatal.
    """
    try:
        config.load_incluster_config()
        log.info("Using in-cluster kube config")
        return
    except ConfigException:
        pass
    try:
        config.load_kube_config()
        log.info("Using local kube config")
    except ConfigException as e:
        if not settings.is_development:
            raise
        log.warning(f"No kube config loaded: {e}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reclaim idle resource policy/usage server")

    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args()

    settings = Settings.from_env()
    load_kube_config(settings)
    server.configure(settings)

    uvicorn.run(server.app, host=args.host, port=args.port)
