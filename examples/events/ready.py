from hotwire import event
from hotwire.utils.logger import Logger

logger = Logger("ReadyEvent")


@event(name="ready")
def on_ready(runtime, event_name, args):
    logger.info(f"{runtime.config.settings.app_name} is connected.")


default = on_ready
