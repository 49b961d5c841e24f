"""jsonapi-params fetch layer: executing built queries."""
from jsonapi_params.fetch.dispatcher import Dispatcher
from jsonapi_params.fetch.page import Page, PageMeta

__all__ = ["Dispatcher", "Page", "PageMeta"]
