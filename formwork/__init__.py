"""Server-rendered forms bound to data models, submitted over AJAX."""

from formwork.conditional import ConditionalDisplay
from formwork.data import Field, Model, ORMModel, ProxyModel, Reference, SchemaModel
from formwork.factory import Seed, decorators, layouts, views
from formwork.fields import (
    Calendar,
    CheckBox,
    DropDown,
    FieldDecorator,
    Hidden,
    Line,
    Money,
    Password,
    TextArea,
)
from formwork.form import FieldRegistry, Form, FormConfig
from formwork.layout import GenericLayout
from formwork.lib.exceptions import ConfigurationError, FieldValueError, FormworkError, ValidationError
from formwork.submission import ErrorKind, SubmitContext, SubmitResponse, SubmitState
from formwork.view import Button, Header, Message, View

__all__ = [
    "Button",
    "Calendar",
    "CheckBox",
    "ConditionalDisplay",
    "ConfigurationError",
    "DropDown",
    "ErrorKind",
    "Field",
    "FieldDecorator",
    "FieldRegistry",
    "FieldValueError",
    "Form",
    "FormConfig",
    "FormworkError",
    "GenericLayout",
    "Header",
    "Hidden",
    "Line",
    "Message",
    "Model",
    "Money",
    "ORMModel",
    "Password",
    "ProxyModel",
    "Reference",
    "SchemaModel",
    "Seed",
    "SubmitContext",
    "SubmitResponse",
    "SubmitState",
    "TextArea",
    "ValidationError",
    "View",
    "decorators",
    "layouts",
    "views",
]
