from pydantic import BaseModel


class NumberingState(BaseModel):
    prefix: str = "INV/"
    auto_numbering: bool = True
