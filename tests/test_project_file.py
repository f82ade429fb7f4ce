import os
import tempfile
import unittest
import xml.etree.ElementTree as ET

from clickonce_version import module_logger
from clickonce_version.config import UpdateOptions
from clickonce_version.errors import (MalformedVersionError,
                                      MissingParentElementError,
                                      MissingRevisionError,
                                      NoClickOnceSettingsError)
from clickonce_version.project_file import (MSBUILD_NAMESPACE,
                                            find_clickonce_blocks,
                                            load_project, set_element_text,
                                            update_project_file)
from clickonce_version.version import ResolvedVersion

NS = {"msb": MSBUILD_NAMESPACE}

PROJECT = """<?xml version="1.0" encoding="utf-8"?>
<Project ToolsVersion="15.0" DefaultTargets="Build" xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <Configuration Condition=" '$(Configuration)' == '' ">Debug</Configuration>
    <OutputType>WinExe</OutputType>
    <PublishUrl>publish\\</PublishUrl>
    <ApplicationRevision>100</ApplicationRevision>
    <ApplicationVersion>1.2.0.100</ApplicationVersion>
  </PropertyGroup>
  <!-- Build settings -->
  <PropertyGroup Condition=" '$(Configuration)|$(Platform)' == 'Debug|AnyCPU' ">
    <DebugSymbols>true</DebugSymbols>
  </PropertyGroup>
  <ItemGroup>
    <Compile Include="Program.cs" />
  </ItemGroup>
</Project>
"""

TWO_BLOCKS = """<?xml version="1.0" encoding="utf-8"?>
<Project xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup Condition=" '$(Configuration)' == 'Debug' ">
    <ApplicationRevision>5</ApplicationRevision>
    <ApplicationVersion>1.0.0.*</ApplicationVersion>
  </PropertyGroup>
  <PropertyGroup Condition=" '$(Configuration)' == 'Release' ">
    <ApplicationRevision>9</ApplicationRevision>
    <ApplicationVersion>2.0.0.*</ApplicationVersion>
  </PropertyGroup>
</Project>
"""

SDK_PROJECT = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>net48</TargetFramework>
    <ApplicationRevision>3</ApplicationRevision>
    <ApplicationVersion>4.5.6.*</ApplicationVersion>
  </PropertyGroup>
</Project>
"""

NO_CLICKONCE = """<?xml version="1.0" encoding="utf-8"?>
<Project xmlns="http://schemas.microsoft.com/developer/msbuild/2003">
  <PropertyGroup>
    <OutputType>Library</OutputType>
  </PropertyGroup>
</Project>
"""

class ProjectFileTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def write_project(self, content, name="App.csproj"):
        path = os.path.join(self._tmp.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def read_bytes(self, path):
        with open(path, "rb") as f:
            return f.read()

    def blocks(self, path, namespace=MSBUILD_NAMESPACE):
        root = ET.parse(path).getroot()
        return find_clickonce_blocks(root, namespace)

    def text(self, block, name, namespace=MSBUILD_NAMESPACE):
        child = block.find(f"{{{namespace}}}{name}" if namespace else name)
        return None if child is None else child.text

class TestUpdateProjectFile(ProjectFileTestCase):
    def test_increment_revision(self):
        path = self.write_project(PROJECT)
        updates = update_project_file(path, UpdateOptions(increment_revision=True))
        self.assertEqual(len(updates), 1)
        self.assertEqual(updates[0].version, ResolvedVersion(1, 2, 0, 101))
        block, = self.blocks(path)
        self.assertEqual(self.text(block, "ApplicationVersion"), "1.2.0.*")
        self.assertEqual(self.text(block, "ApplicationRevision"), "101")
        self.assertIsNone(self.text(block, "MinimumRequiredVersion"))

    def test_build_id(self):
        path = self.write_project(PROJECT)
        update_project_file(path, UpdateOptions(build_id=123456))
        block, = self.blocks(path)
        self.assertEqual(self.text(block, "ApplicationVersion"), "1.2.1.*")
        self.assertEqual(self.text(block, "ApplicationRevision"), "57920")

    def test_build_id_twice_gives_same_version(self):
        path = self.write_project(PROJECT)
        first = update_project_file(path, UpdateOptions(build_id=123456))
        second = update_project_file(path, UpdateOptions(build_id=123456))
        self.assertEqual(first[0].version, second[0].version)

    def test_explicit_version_and_minimum_version(self):
        path = self.write_project(PROJECT)
        update_project_file(path, UpdateOptions(version="5.6.7.8", update_min_version=True))
        block, = self.blocks(path)
        self.assertEqual(self.text(block, "ApplicationVersion"), "5.6.7.*")
        self.assertEqual(self.text(block, "ApplicationRevision"), "8")
        self.assertEqual(self.text(block, "MinimumRequiredVersion"), "5.6.7.8")
        self.assertEqual(self.text(block, "UpdateRequired"), "true")
        self.assertEqual(self.text(block, "UpdateEnabled"), "true")
        # New elements are appended after the existing ones
        names = [child.tag.split("}")[1] for child in block]
        self.assertEqual(names[-3:], ["MinimumRequiredVersion", "UpdateRequired", "UpdateEnabled"])

    def test_existing_elements_are_updated_in_place(self):
        path = self.write_project(PROJECT)
        before = [child.tag for child in self.blocks(path)[0]]
        update_project_file(path, UpdateOptions(increment_revision=True, publish_url="https://example.com/app/"))
        block, = self.blocks(path)
        self.assertEqual([child.tag for child in block], before)
        self.assertEqual(self.text(block, "PublishUrl"), "https://example.com/app/")

    def test_install_url_is_created(self):
        path = self.write_project(PROJECT)
        update_project_file(path, UpdateOptions(install_url="https://example.com/install/"))
        block, = self.blocks(path)
        self.assertEqual(block[-1].tag, f"{{{MSBUILD_NAMESPACE}}}InstallUrl")
        self.assertEqual(block[-1].text, "https://example.com/install/")
        # Nothing else changed about the version
        self.assertEqual(self.text(block, "ApplicationVersion"), "1.2.0.*")
        self.assertEqual(self.text(block, "ApplicationRevision"), "100")

    def test_blocks_are_updated_independently(self):
        path = self.write_project(TWO_BLOCKS)
        updates = update_project_file(path, UpdateOptions(increment_revision=True))
        self.assertEqual([u.version for u in updates], [ResolvedVersion(1, 0, 0, 6), ResolvedVersion(2, 0, 0, 10)])
        self.assertIn("Debug", updates[0].label)
        self.assertIn("Release", updates[1].label)
        debug, release = self.blocks(path)
        self.assertEqual(self.text(debug, "ApplicationRevision"), "6")
        self.assertEqual(self.text(release, "ApplicationRevision"), "10")
        self.assertEqual(self.text(release, "ApplicationVersion"), "2.0.0.*")

    def test_one_line_per_block(self):
        path = self.write_project(TWO_BLOCKS)
        with self.assertLogs(module_logger, level="INFO") as logs:
            update_project_file(path, UpdateOptions(build_id=65536, update_min_version=True))
        lines = [line for line in logs.output if "Set ClickOnce version" in line]
        self.assertEqual(len(lines), 2)
        self.assertIn("1.0.1.0", lines[0])
        self.assertIn("minimum required version 2.0.1.0", lines[1])

    def test_document_is_otherwise_preserved(self):
        path = self.write_project(PROJECT)
        update_project_file(path, UpdateOptions(increment_revision=True))
        content = self.read_bytes(path).decode("utf-8")
        self.assertNotIn("ns0", content)
        self.assertIn('xmlns="http://schemas.microsoft.com/developer/msbuild/2003"', content)
        self.assertIn("<!-- Build settings -->", content)
        self.assertIn('<Compile Include="Program.cs" />', content)
        self.assertIn("<DebugSymbols>true</DebugSymbols>", content)
        self.assertTrue(content.startswith("<?xml"))

    def test_project_without_namespace(self):
        path = self.write_project(SDK_PROJECT)
        update_project_file(path, UpdateOptions(increment_revision=True, update_min_version=True))
        block, = self.blocks(path, namespace="")
        self.assertEqual(self.text(block, "ApplicationRevision", ""), "4")
        self.assertEqual(self.text(block, "MinimumRequiredVersion", ""), "4.5.6.4")
        self.assertNotIn("xmlns", self.read_bytes(path).decode("utf-8"))

class TestUpdateErrors(ProjectFileTestCase):
    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            update_project_file(os.path.join(self._tmp.name, "missing.csproj"), UpdateOptions(increment_revision=True))

    def test_directory_is_not_a_project_file(self):
        with self.assertRaises(FileNotFoundError):
            load_project(self._tmp.name)

    def test_no_clickonce_settings(self):
        path = self.write_project(NO_CLICKONCE)
        before = self.read_bytes(path)
        with self.assertRaises(NoClickOnceSettingsError):
            update_project_file(path, UpdateOptions(increment_revision=True))
        self.assertEqual(self.read_bytes(path), before)

    def test_error_in_later_block_leaves_file_untouched(self):
        path = self.write_project(TWO_BLOCKS.replace("<ApplicationVersion>2.0.0.*", "<ApplicationVersion>2.0"))
        before = self.read_bytes(path)
        with self.assertRaises(MalformedVersionError):
            update_project_file(path, UpdateOptions(increment_revision=True))
        self.assertEqual(self.read_bytes(path), before)

    def test_missing_revision(self):
        path = self.write_project(SDK_PROJECT.replace("<ApplicationRevision>3</ApplicationRevision>", ""))
        before = self.read_bytes(path)
        with self.assertRaises(MissingRevisionError):
            update_project_file(path, UpdateOptions(increment_revision=True))
        self.assertEqual(self.read_bytes(path), before)

class TestSetElementText(unittest.TestCase):
    def test_missing_parent(self):
        with self.assertRaises(MissingParentElementError):
            set_element_text(None, "ApplicationVersion", "1.0.0.*")

    def test_upsert_is_idempotent(self):
        group = ET.fromstring("<PropertyGroup>\n    <A>1</A>\n  </PropertyGroup>")
        first = set_element_text(group, "B", "x")
        second = set_element_text(group, "B", "y")
        self.assertIs(first, second)
        self.assertEqual([child.tag for child in group], ["A", "B"])
        self.assertEqual(group.find("B").text, "y")

    def test_new_element_is_indented_like_siblings(self):
        group = ET.fromstring("<PropertyGroup>\n    <A>1</A>\n  </PropertyGroup>")
        set_element_text(group, "B", "2")
        self.assertEqual(
            ET.tostring(group, encoding="unicode"),
            "<PropertyGroup>\n    <A>1</A>\n    <B>2</B>\n  </PropertyGroup>"
        )

    def test_namespace(self):
        group = ET.fromstring(f'<PropertyGroup xmlns="{MSBUILD_NAMESPACE}" />')
        child = set_element_text(group, "UpdateEnabled", "true", MSBUILD_NAMESPACE)
        self.assertEqual(child.tag, f"{{{MSBUILD_NAMESPACE}}}UpdateEnabled")
        self.assertEqual(group.find("msb:UpdateEnabled", NS).text, "true")

if __name__ == "__main__":
    unittest.main()
