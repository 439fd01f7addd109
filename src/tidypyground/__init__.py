"""TidyPyground

A table algebra engine built from scratch for learning and teaching purposes.

TidyPyground implements the operations that data wrangling tutorials
usually exercise through a dataframe library: reshaping tables between
long and wide formats, joining tables, stacking them by rows or columns
and combining them with set operations.

The platform is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Compute Engine, in charge of executing the table operations.
* The Dataframe API, which provides an high level API for the compute engine.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute

__all__ = ("compute",)
