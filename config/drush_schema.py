"""
drush.yml Configuration Schema

Pydantic models for validating configuration files. Files are free-form:
only the keys preflight itself reads are typed, everything else is allowed
through unchanged.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class PythonConfig(BaseModel):
    """drush.python section"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    minimum_version: Optional[str] = Field(
        None,
        alias="minimum-version",
        description="Minimum Python version, e.g. '3.10'"
    )

    @field_validator('minimum_version', mode='before')
    @classmethod
    def validate_minimum_version(cls, v):
        """Accept a quoted version such as '3.10' or a bare major version"""
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            # An unquoted 3.10 has already become the float 3.1
            raise ValueError(f"Version {v!r} must be quoted, e.g. '3.10'")
        v = str(v).strip()
        parts = v.split('.')
        if not parts or not all(part.isdigit() for part in parts):
            raise ValueError(f"Invalid version '{v}' (expected e.g. '3.10')")
        return v


class DrushSection(BaseModel):
    """drush section"""
    model_config = ConfigDict(extra="allow")

    python: Optional[PythonConfig] = Field(None, description="Python runtime requirements")


class OptionsSection(BaseModel):
    """options section: defaults for command options"""
    model_config = ConfigDict(extra="allow")

    uri: Optional[str] = Field(None, description="Default site URI")


class DrushConfigFile(BaseModel):
    """A single drush.yml file"""
    model_config = ConfigDict(extra="allow")

    drush: Optional[DrushSection] = None
    options: Optional[OptionsSection] = None
