from pathlib import Path

from cattrs.preconf.json import make_converter

converter = make_converter(omit_if_default=True)

converter.register_unstructure_hook(Path, str)
converter.register_structure_hook(Path, lambda v, _: Path(v))
