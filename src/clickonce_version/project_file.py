"""
Reading and updating the ClickOnce properties of a Visual Studio project file.

A project file may carry ClickOnce settings in several ``PropertyGroup`` blocks
(typically one per configuration, e.g. Debug and Release). Every block that
defines ``ApplicationVersion`` is updated on its own, using its own stored
values as the baseline.

The document is modified in memory and only written back once all blocks have
been processed, so an error leaves the file on disk untouched.
"""

import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import NamedTuple, Optional

from clickonce_version import module_logger
from clickonce_version.config import UpdateOptions
from clickonce_version.errors import (MissingParentElementError,
                                      NoClickOnceSettingsError)
from clickonce_version.version import ResolvedVersion, resolve_version

MSBUILD_NAMESPACE = "http://schemas.microsoft.com/developer/msbuild/2003"

PROPERTY_GROUP = "PropertyGroup"
APPLICATION_VERSION = "ApplicationVersion"
APPLICATION_REVISION = "ApplicationRevision"
MINIMUM_REQUIRED_VERSION = "MinimumRequiredVersion"
UPDATE_REQUIRED = "UpdateRequired"
UPDATE_ENABLED = "UpdateEnabled"
PUBLISH_URL = "PublishUrl"
INSTALL_URL = "InstallUrl"

class ProjectDocument(NamedTuple):
    path : Path
    tree : ET.ElementTree
    namespace : str

    @property
    def root(self) -> ET.Element:
        return self.tree.getroot()

class BlockUpdate(NamedTuple):
    label : str
    version : ResolvedVersion
    minimum_version_updated : bool

    def describe(self) -> str:
        message = f"Set ClickOnce version of {self.label} to {self.version}"
        if self.minimum_version_updated:
            message += f" (minimum required version {self.version})"
        return message

def qualify(name : str, namespace : str="") -> str:
    return f"{{{namespace}}}{name}" if namespace else name

def namespace_of(element : ET.Element) -> str:
    tag = element.tag
    if isinstance(tag, str) and tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""

def load_project(path : str | os.PathLike[str]) -> ProjectDocument:
    """Parse a project file, keeping comments and processing instructions.

    Raises:
        FileNotFoundError: If ``path`` does not exist or is not a regular file.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Project file not found: {path}")
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    tree = ET.parse(path, parser=parser)
    namespace = namespace_of(tree.getroot())
    if namespace:
        # Serialize the project namespace as the default namespace instead of "ns0:".
        ET.register_namespace("", namespace)
    module_logger.debug(f"Loaded '{path}' (namespace: {namespace or 'none'})")
    return ProjectDocument(path, tree, namespace)

def save_project(document : ProjectDocument) -> None:
    # Serialize fully before opening the file, so a serialization error cannot truncate it.
    data = ET.tostring(document.root, encoding="utf-8", xml_declaration=True)
    document.path.write_bytes(data + b"\n")
    module_logger.debug(f"Saved '{document.path}'")

def find_child(parent : ET.Element, name : str, namespace : str="") -> Optional[ET.Element]:
    return parent.find(qualify(name, namespace))

def child_text(parent : ET.Element, name : str, namespace : str="") -> Optional[str]:
    child = find_child(parent, name, namespace)
    return None if child is None else child.text

def find_clickonce_blocks(root : ET.Element, namespace : str="") -> list[ET.Element]:
    """All PropertyGroup elements (in document order) that define ApplicationVersion."""
    return [
        group for group in root.iter(qualify(PROPERTY_GROUP, namespace))
        if find_child(group, APPLICATION_VERSION, namespace) is not None
    ]

def set_element_text(
        parent : Optional[ET.Element],
        name : str,
        text : str,
        namespace : str=""
    ) -> ET.Element:
    """
    Set the text of the child ``name`` of ``parent``, creating the child if needed.

    An existing child keeps its position. A new child is appended as the last
    child of ``parent``, in ``namespace``, indented like its siblings.

    Raises:
        MissingParentElementError: If ``parent`` is None.
    """
    if parent is None:
        raise MissingParentElementError(name)
    child = find_child(parent, name, namespace)
    if child is None:
        siblings = list(parent)
        child = ET.SubElement(parent, qualify(name, namespace))
        if siblings:
            # The new element takes over the closing indentation of the old last child.
            child.tail = siblings[-1].tail
            siblings[-1].tail = parent.text
        module_logger.debug(f"Created <{name}>")
    child.text = text
    return child

def block_label(block : ET.Element, index : int) -> str:
    condition = block.get("Condition")
    if condition:
        return f"PropertyGroup [{condition.strip()}]"
    return f"PropertyGroup #{index}"

def apply_version(
        block : ET.Element,
        resolved : ResolvedVersion,
        options : UpdateOptions,
        namespace : str=""
    ) -> None:
    if options.publish_url is not None:
        set_element_text(block, PUBLISH_URL, options.publish_url, namespace)
    if options.install_url is not None:
        set_element_text(block, INSTALL_URL, options.install_url, namespace)
    set_element_text(block, APPLICATION_VERSION, resolved.wildcard_version, namespace)
    set_element_text(block, APPLICATION_REVISION, resolved.revision_string, namespace)
    if options.update_min_version:
        set_element_text(block, MINIMUM_REQUIRED_VERSION, resolved.version, namespace)
        set_element_text(block, UPDATE_REQUIRED, "true", namespace)
        set_element_text(block, UPDATE_ENABLED, "true", namespace)

def update_block(block : ET.Element, options : UpdateOptions, namespace : str="") -> ResolvedVersion:
    """Resolve the new version of one block from its own stored values and apply it."""
    resolved = resolve_version(
        child_text(block, APPLICATION_VERSION, namespace) or "",
        child_text(block, APPLICATION_REVISION, namespace),
        explicit_version=options.version,
        build_id=options.build_id,
        increment_revision=options.increment_revision
    )
    apply_version(block, resolved, options, namespace)
    return resolved

def update_document(document : ProjectDocument, options : UpdateOptions) -> list[BlockUpdate]:
    blocks = find_clickonce_blocks(document.root, document.namespace)
    if not blocks:
        raise NoClickOnceSettingsError(document.path)
    updates = []
    for index, block in enumerate(blocks, start=1):
        resolved = update_block(block, options, document.namespace)
        updates.append(BlockUpdate(block_label(block, index), resolved, options.update_min_version))
    return updates

def update_project_file(path : str | os.PathLike[str], options : UpdateOptions) -> list[BlockUpdate]:
    """
    Update the ClickOnce version (and optional URLs/update flags) of every
    ClickOnce block in the project file at ``path`` and save it.

    Nothing is written if any block fails.

    Args:
        path: Path to the project file.
        options: The requested changes.

    Returns:
        One :py:class:`BlockUpdate` per updated block, in document order.

    Raises:
        FileNotFoundError: If ``path`` is not an existing file.
        NoClickOnceSettingsError: If no PropertyGroup defines ApplicationVersion.
        MalformedVersionError, MissingRevisionError, InvalidRevisionFormatError:
            If a block's version cannot be resolved.
    """
    document = load_project(path)
    updates = update_document(document, options)
    save_project(document)
    for update in updates:
        module_logger.info(update.describe())
    return updates
