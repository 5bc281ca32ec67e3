from enum import Enum
from typing import Dict


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Field name -> direction, in ORDER BY precedence.
SortSpec = Dict[str, SortDirection]
