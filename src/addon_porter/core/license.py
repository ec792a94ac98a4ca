"""
License header stamping for ported scripts and stylesheets.
"""

from addon_porter.core.tracer import get_tracer

LICENSE_MARKER = "@license"

DEFAULT_LICENSE_HEADER = """/**!
 * Imported from the upstream addon collection
 * @license GPLv3.0 (see LICENSE_GPL or https://www.gnu.org/licenses/ for more information)
 */

"""

_STAMPED_SUFFIXES = (".js", ".css")


def needs_license(path: str) -> bool:
  """True for files that receive a license header (``.js`` and ``.css``)."""
  return path.lower().endswith(_STAMPED_SUFFIXES)


def stamp_license(text: str, header: str = DEFAULT_LICENSE_HEADER, path: str = "") -> str:
  """
  Prepends `header` unless the text already carries a license marker.

  Stamping already-stamped text returns it unchanged.

  Args:
      text: File contents.
      header: License block, inserted verbatim.
      path: Optional path, used for tracing.

  Returns:
      str: The (possibly) stamped text.
  """
  if LICENSE_MARKER in text or (header and text.startswith(header)):
    return text
  get_tracer().log_license(path)
  return header + text
