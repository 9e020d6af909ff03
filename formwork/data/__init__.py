from formwork.data.model import Field, Model, ProxyModel, Reference
from formwork.data.orm import ORMModel
from formwork.data.schema import SchemaModel

__all__ = ["Field", "Model", "ORMModel", "ProxyModel", "Reference", "SchemaModel"]
