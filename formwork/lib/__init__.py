from formwork.lib.hooks import hooks, action, filter
from formwork.lib.js import JsChain, JsExpression, JsFunction, js_encode
from formwork.lib.template import Template

__all__ = [
    "JsChain",
    "JsExpression",
    "JsFunction",
    "Template",
    "action",
    "filter",
    "hooks",
    "js_encode",
]
