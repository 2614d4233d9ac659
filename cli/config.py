"""Configuration for the terminal client."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=8000, description="Server port")
    api_path: str = Field(
        default="/api/solve", description="API path of the solve endpoint"
    )
    connect_timeout: float = Field(
        default=10.0, description="Seconds to wait for the connection"
    )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def solve_url(self) -> str:
        return f"{self.base_url}{self.api_path}"
