"""
Metric beans and typed results.

A bean is a named, structured metric sample exposed by a broker process,
identified by a JMX object name such as
``kafka.server:type=BrokerTopicMetrics,name=BytesInPerSec,topic=orders``.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


def parse_object_name(object_name: str) -> Tuple[str, Dict[str, str]]:
    """
    Split an object name into its domain and key properties.

    Args:
        object_name: ``domain:key=value,key=value``

    Returns:
        (domain, properties)
    """
    domain, sep, rest = object_name.partition(":")
    if not sep or not domain:
        raise ValueError(f"Invalid object name: {object_name}")

    properties = {}
    for pair in rest.split(","):
        if not pair or pair == "*":
            continue
        key, eq, value = pair.partition("=")
        if not eq:
            raise ValueError(f"Invalid object name: {object_name}")
        properties[key] = value
    return domain, properties


def render_object_name(domain: str, properties: Dict[str, str], pattern: bool = False) -> str:
    """Render domain and properties as an object name, keys sorted."""
    pairs = [f"{k}={properties[k]}" for k in sorted(properties)]
    if pattern:
        pairs.append("*")
    return f"{domain}:{','.join(pairs)}"


@dataclass(frozen=True)
class BeanObject:
    """
    One bean as read from a broker.

    Attributes:
        domain: Object name domain
        properties: Key properties of the object name
        attributes: Attribute name -> value at read time
        created_timestamp: Read time in milliseconds (not compared)
    """
    domain: str
    properties: Dict[str, str]
    attributes: Dict[str, Any]
    created_timestamp: int = field(default=0, compare=False)

    def __post_init__(self):
        if self.created_timestamp == 0:
            object.__setattr__(self, "created_timestamp", int(time.time() * 1000))

    def object_name(self) -> str:
        return render_object_name(self.domain, self.properties)

    @classmethod
    def of(cls, object_name: str, attributes: Dict[str, Any], created_timestamp: int = 0) -> "BeanObject":
        """Create from an object name string."""
        domain, properties = parse_object_name(object_name)
        return cls(domain, properties, dict(attributes), created_timestamp)


@dataclass(frozen=True)
class BeanQuery:
    """
    Selects beans by domain and key properties.

    A property value of ``*`` matches any value; ``pattern`` additionally
    allows properties not listed.
    """
    domain: str
    properties: Dict[str, str]
    pattern: bool = False

    def object_name(self) -> str:
        return render_object_name(self.domain, self.properties, self.pattern)

    def is_pattern(self) -> bool:
        return self.pattern or "*" in self.domain or any("*" in v for v in self.properties.values())

    def matches(self, bean: BeanObject) -> bool:
        """Check whether a bean falls under this query."""
        if self.domain != "*" and bean.domain != self.domain:
            return False
        for key, value in self.properties.items():
            if key not in bean.properties:
                return False
            if value != "*" and bean.properties[key] != value:
                return False
        if not self.pattern and set(bean.properties) != set(self.properties):
            return False
        return True


@dataclass(frozen=True)
class HasBeanObject:
    """Typed result wrapping the bean it was parsed from."""
    bean_object: BeanObject

    def attribute(self, name: str, default: Any = None) -> Any:
        return self.bean_object.attributes.get(name, default)

    def key_property(self, name: str, default: Any = None) -> Any:
        return self.bean_object.properties.get(name, default)
