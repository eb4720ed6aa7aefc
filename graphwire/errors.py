from typing import Any, Sequence


class GraphWireError(Exception):
    """
    Base class for all graphwire exceptions.
    """

    def __init__(self, message: str, /):
        self.message = message
        super().__init__(self.message)


# =============== Directive Errors ===============


class DirectiveError(GraphWireError):
    """
    Base class for all directive related exceptions.
    """


class MalformedDirectiveError(DirectiveError):
    """
    Raised when a raw tag mentions the directive key but can't be parsed.
    e.g. 'inject:' or 'inject:"db'
    """

    def __init__(self, raw_tag: str, reason: str = ""):
        self.raw_tag = raw_tag
        msg = f"malformed directive in tag `{raw_tag}`"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# =============== Provide Errors ===============


class ProvideError(GraphWireError):
    """
    Base class for all provide-time validation exceptions.
    """


class PreWiredObjectError(ProvideError):
    def __init__(self, obj: Any):
        super().__init__(f"fields were specified on object {obj} when it was provided")


class ShapeViolationError(ProvideError):
    def __init__(self, obj: Any):
        super().__init__(
            "expected unnamed object value to be an instance of a record class "
            f"but got type {obj.type} with value {obj.value!r}"
        )


class DuplicateTypeError(ProvideError):
    def __init__(self, obj: Any):
        super().__init__(f"provided two unnamed instances of type {obj.type}")


class DuplicateNameError(ProvideError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"provided two instances named {name}")


# =============== Populate Errors ===============


class PopulateError(GraphWireError):
    """
    Base class for all population related exceptions.
    """


class FieldResolveError(PopulateError):
    """
    Raised when a single field of an object can't be satisfied.
    Carries the field name and the declaring type.
    """

    def __init__(self, message: str, *, field_name: str, owner: Any):
        self.field_name = field_name
        self.owner = owner
        super().__init__(message)


class UnresolvableAnnotationError(FieldResolveError):
    def __init__(self, owner: Any, reason: Exception, field_name: str = ""):
        target = f"field {field_name} of type {owner}" if field_name else f"type {owner}"
        super().__init__(
            f"unable to evaluate annotation of {target}: {reason}",
            field_name=field_name,
            owner=owner,
        )


class InvalidFieldDirectiveError(FieldResolveError):
    """
    Raised when a field carries a tag that can't be parsed.
    """

    def __init__(self, raw_tag: str, field_name: str, owner: Any):
        self.raw_tag = raw_tag
        super().__init__(
            f"unexpected tag format `{raw_tag}` for field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class InaccessibleFieldError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any):
        super().__init__(
            f"inject requested on unexported field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class InlineMisuseError(FieldResolveError):
    """
    Raised when inline is requested on a field not held by value,
    a field held by value lacks the inline directive,
    or private is combined with a field held by value.
    """


class PrivateInterfaceError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any):
        super().__init__(
            f"found private inject tag on interface field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class MissingNamedError(FieldResolveError):
    def __init__(self, name: str, field_name: str, owner: Any):
        self.name = name
        super().__init__(
            f"did not find object named {name} required by field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class TypeMismatchError(FieldResolveError):
    def __init__(self, name: str, field_type: Any, actual: Any, field_name: str, owner: Any):
        self.name = name
        super().__init__(
            f"object named {name} of type {actual} is not assignable to "
            f"field {field_name} ({field_type}) in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class MapMisuseError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any):
        super().__init__(
            f"inject on map field {field_name} in type {owner} must be named or private",
            field_name=field_name,
            owner=owner,
        )


class UnsupportedFieldError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any):
        super().__init__(
            f"found inject tag on unsupported field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class InstantiationError(FieldResolveError):
    """
    Raised when no zero valued instance of a field's type can be made,
    e.g. extension types whose constructor requires arguments.
    """

    def __init__(self, field_type: Any, field_name: str, owner: Any, reason: Exception):
        super().__init__(
            f"unable to create a zero valued {field_type} "
            f"for field {field_name} in type {owner}: {reason}",
            field_name=field_name,
            owner=owner,
        )


class NoImplementationError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any):
        super().__init__(
            f"found no assignable value for field {field_name} in type {owner}",
            field_name=field_name,
            owner=owner,
        )


class AmbiguousImplementationError(FieldResolveError):
    def __init__(self, field_name: str, owner: Any, candidates: Sequence[Any]):
        self.candidates = list(candidates)
        candidates_repr = ", ".join(
            f"{c.type} with value {c.value!r}" for c in self.candidates
        )
        super().__init__(
            f"found {len(self.candidates)} assignable values for field {field_name} "
            f"in type {owner}: {candidates_repr}",
            field_name=field_name,
            owner=owner,
        )


class UnhandledNamedDirectiveError(PopulateError):
    """
    Named interface fields are resolved in the first pass,
    reaching the second pass with one is a bug in graphwire itself.
    """

    def __init__(self, name: str):
        super().__init__(f"unhandled named instance with name {name}")


# =============== Container Errors ===============


class ContainerError(GraphWireError):
    """
    Base class for all container related exceptions.
    """


class ServiceRegistrationError(ContainerError):
    def __init__(self, service_id: str, reason: Exception):
        self.service_id = service_id
        super().__init__(f"failed to register service {service_id}: {reason}")


class ServicePopulateError(ContainerError):
    def __init__(self, reason: Exception):
        super().__init__(f"failed to populate graph: {reason}")


class ServiceStartupError(ContainerError):
    def __init__(self, service_id: str, reason: Exception):
        self.service_id = service_id
        super().__init__(f"failed to start service {service_id}: {reason}")


class ServiceNotFoundError(ContainerError):
    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(f"service {service_id} not found")
