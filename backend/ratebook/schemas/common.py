from pydantic import BaseModel


class WriteModel(BaseModel):
    """Request body whose enum fields are stored as their plain values."""

    model_config = {"use_enum_values": True, "validate_default": True}
