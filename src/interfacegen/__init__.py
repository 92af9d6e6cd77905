# Make sure to place exceptions first as they're dependencies of other imports.
from interfacegen.exceptions import *

from interfacegen._analyzer.locator import LiteralParser as LiteralParser
from interfacegen._analyzer.oracle import SourceTypeOracle as SourceTypeOracle
from interfacegen._config import Config as Config
from interfacegen.generator import ClassOutcome as ClassOutcome
from interfacegen.generator import GenerationReport as GenerationReport
from interfacegen.generator import InterfaceGenerator as InterfaceGenerator
from interfacegen.generator import Status as Status
from interfacegen.generator import generate_interfaces as generate_interfaces
from interfacegen.generator import write_interface_file as write_interface_file
