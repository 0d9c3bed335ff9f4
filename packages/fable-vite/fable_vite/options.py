"""User-facing plugin options."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

JsxMode = Literal["transform", "preserve", "automatic"]


class PluginOptions(BaseModel):
    """
    Options passed to ``fable({...})`` in the bundler config.

    Both the snake_case names and the JavaScript names are accepted:
        PluginOptions.model_validate({"projectFile": "App.fsproj", "jsx": "automatic"})
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    project_file: str | None = Field(
        default=None,
        validation_alias=AliasChoices("project_file", "projectFile", "fsproj"),
        description="Project to load; discovered in the root when omitted",
    )
    jsx_mode: JsxMode | None = Field(
        default=None,
        validation_alias=AliasChoices("jsx_mode", "jsxMode", "jsx"),
        description="JSX handling of the generated code (applied by the host)",
    )
    no_reflection: bool = Field(
        default=False,
        validation_alias=AliasChoices("no_reflection", "noReflection"),
        description="Ask the compiler to skip reflection metadata",
    )
    exclude_paths: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("exclude_paths", "excludePaths", "exclude"),
        description="Paths the compiler should leave out",
    )
