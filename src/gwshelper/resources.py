from dataclasses import asdict, fields, is_dataclass
from typing import List, Self


class GoogleWorkSpaceResourceBase():
    """
    Intended to be subclassed by a dataclass but isnt actually a dataclass.
    Subclasses mirror a GWS resource representation, field names match the
    JSON keys so asdict() gives what the client wants.
    """
    @classmethod
    def from_base(cls, base: dict|None) -> Self:
        """
        Build from a raw response dict.  The APIs return a lot more than we
        model (tabs, headers, styles...) so anything that isnt a field is dropped
        rather than blowing up the initializer.
        """
        if not base:
            return cls()
        names = {f.name for f in fields(cls) if f.init}
        return cls(**{k: v for k, v in dict(base).items() if k in names})

    def to_base(self) -> dict:
        """
        Default just return the dict representation of the object as needed by
        the GWS client.  Something more complicated can override.
        Call fixup() first to ensure all fields are in correct format.
        """
        self.fixup()
        return asdict(self)

    def trim(self) -> dict|None:
        """
        Return a 'trimmed' dict of the resource, top level attributes that are
        None or empty containers/strings are removed.  Requests that only
        want filled-in fields (updates mostly) need this.
        """
        b = self.to_base()
        if b:
            for k, v in list(b.items()):
                if v is None or (type(v) not in [int, bool, float] and not v):
                    del b[k]
        return b

    def fixup(self) -> None:
        """
        notify a subclass to do any field adjustments
        """
        pass

    def update_fields(self, **kwargs) -> List[str]:
        """
        Update fields that may be present.
        """
        updated_fields = []
        if is_dataclass(self):
            names = {f.name for f in fields(self)}
            for k, v in kwargs.items():
                if v is not None and k in names:
                    setattr(self, k, v)
                    updated_fields.append(k)
            self.fixup()
        return updated_fields
