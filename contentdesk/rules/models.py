from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class SecurityRules(BaseModel):
    forbidden_url_protocols: list[str] = Field(
        default_factory=lambda: ["javascript:", "data:", "vbscript:"]
    )


class ParserRules(BaseModel):
    drop_tags: list[str] = Field(
        default_factory=lambda: ["script", "style", "template", "head", "noscript"]
    )


class EditorRules(BaseModel):
    tab_text: str = "  "
    max_html_bytes: int = Field(default=400_000, gt=0)
    parser: ParserRules = Field(default_factory=ParserRules)


class Rules(BaseModel):
    project: ProjectRules
    security: SecurityRules = Field(default_factory=SecurityRules)
    editor: EditorRules = Field(default_factory=EditorRules)
