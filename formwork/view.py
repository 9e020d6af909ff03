"""Minimal server-side component tree rendered to HTML with MarkupSafe."""

from __future__ import annotations

from typing import Any, Iterator

from markupsafe import Markup, escape

from formwork.factory import configure, views
from formwork.lib.js import JsChain, JsExpression, JsFunction, render_statements

VOID_ELEMENTS = frozenset({"input", "br", "hr", "img", "meta", "link"})


@views.register("View")
class View:
    """A node in the component tree.

    Options passed to the constructor must already exist as class
    attributes, so typos fail loudly:

        View("Hello", element="span", classes=["muted"])
    """

    element = "div"
    ui: str | None = None
    content: Any = None
    classes: list[str] | None = None
    attrs: dict[str, Any] | None = None
    style: dict[str, str] | None = None
    short_name: str | None = None

    def __init__(self, content: Any = None, **options: Any):
        self.parent: View | None = None
        self.children: list[View] = []
        self.name: str | None = None
        self._js_actions: list[JsExpression] = []
        configure(self, options)
        if content is not None:
            self.content = content
        self.classes = list(self.classes or [])
        self.attrs = dict(self.attrs or {})
        self.style = dict(self.style or {})

    # -- Tree --

    def add(self, view: Any, short_name: str | None = None) -> View:
        """Attach a child; seeds (tag, list or dict) are built via the view registry."""
        if not isinstance(view, View):
            view = views.create(view, default_tag="View")
        view.parent = self
        base = short_name or view.short_name or type(view).__name__.lower()
        taken = {child.short_name for child in self.children}
        candidate, n = base, 2
        while candidate in taken:
            candidate = f"{base}_{n}"
            n += 1
        view.short_name = candidate
        self.children.append(view)
        view._rename()
        view.on_added()
        return view

    def on_added(self) -> None:
        """Called once the view has a parent and a name."""

    def _rename(self) -> None:
        parent_name = self.parent.name if self.parent is not None else None
        self.name = f"{parent_name}_{self.short_name}" if parent_name else self.short_name
        for child in self.children:
            child._rename()

    def get_element(self, short_name: str) -> View:
        for child in self.children:
            if child.short_name == short_name:
                return child
        raise KeyError(f"No element named '{short_name}' in {self.name}")

    def walk(self) -> Iterator[View]:
        yield self
        for child in self.children:
            yield from child.walk()

    def owner(self, cls: type) -> Any:
        """Nearest ancestor (or self) of the given class."""
        node: View | None = self
        while node is not None:
            if isinstance(node, cls):
                return node
            node = node.parent
        return None

    # -- Attributes --

    @property
    def id(self) -> str | None:
        return self.attrs.get("id") or self.name

    def add_class(self, *classes: str) -> View:
        for c in classes:
            if c not in self.classes:
                self.classes.append(c)
        return self

    def set_attr(self, key: str, value: Any) -> View:
        self.attrs[key] = value
        return self

    def set_style(self, style: dict[str, str]) -> View:
        self.style.update(style)
        return self

    # -- JavaScript --

    def js(self, when: bool = False, action: JsExpression | None = None) -> JsExpression:
        """Chain targeting this view; with ``when`` the action runs on page ready."""
        expression = action if action is not None else JsChain(self)
        if when:
            self._js_actions.append(expression)
        return expression

    def on(self, event: str, selector: Any = None, action: Any = None) -> JsChain:
        """Bind a client event handler, optionally delegated to ``selector``."""
        if action is None:
            selector, action = None, selector
        actions = action if isinstance(action, list) else [action]
        handler = JsFunction(actions)
        chain = JsChain(self)
        if selector is None:
            chain.on(event, handler)
        else:
            chain.on(event, selector, handler)
        self._js_actions.append(chain)
        return chain

    def js_actions(self) -> list[JsExpression]:
        """On-ready actions of this view alone; widgets override to add plugin setup."""
        return list(self._js_actions)

    def collect_js(self) -> list[JsExpression]:
        actions = []
        for view in self.walk():
            actions.extend(view.js_actions())
        return actions

    def render_js(self) -> str:
        return render_statements(self.collect_js())

    # -- Rendering --

    def css_classes(self) -> list[str]:
        classes = ["ui", *self.ui.split()] if self.ui else []
        return classes + [c for c in self.classes if c not in classes]

    def render_content(self) -> Markup:
        html = escape(self.content) if self.content is not None else Markup("")
        for child in self.children:
            html += child.render()
        return Markup(html)

    def render(self) -> Markup:
        attrs: dict[str, Any] = {"id": self.id, "class": " ".join(self.css_classes()) or None}
        attrs.update({k: v for k, v in self.attrs.items() if k != "id"})
        if self.style:
            attrs["style"] = "; ".join(f"{k}: {v}" for k, v in self.style.items())
        open_tag = f"<{self.element}{render_attrs(attrs)}>"
        if self.element in VOID_ELEMENTS:
            return Markup(open_tag)
        return Markup(f"{open_tag}{self.render_content()}</{self.element}>")

    def __html__(self) -> str:
        return str(self.render())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


@views.register("Button")
class Button(View):
    element = "button"
    ui = "button"

    def __init__(self, content: Any = None, **options: Any):
        super().__init__(content, **options)
        self.attrs.setdefault("type", "button")


@views.register("Header")
class Header(View):
    element = "h4"
    ui = "dividing header"


@views.register("Message")
class Message(View):
    """Semantic message box with a header line and body text."""

    ui = "message"
    text: str | None = None

    def render_content(self) -> Markup:
        html = Markup("")
        if self.content is not None:
            html += Markup('<div class="header">%s</div>') % self.content
        if self.text:
            html += Markup("<p>%s</p>") % self.text
        for child in self.children:
            html += child.render()
        return html


def render_attrs(attrs: dict) -> str:
    """Render a dict as HTML attributes. Returns '' or ' key="val" key2="val2"'.

    ``None`` and ``False`` values are skipped, ``True`` renders a bare attribute.
    """
    parts = []
    for k, v in attrs.items():
        if v is None or v is False:
            continue
        # Python naming to HTML: class_ -> class, data_id -> data-id
        attr_name = k.rstrip("_").replace("_", "-")
        if v is True:
            parts.append(attr_name)
        else:
            parts.append(f'{attr_name}="{escape(str(v))}"')
    return (" " + " ".join(parts)) if parts else ""
