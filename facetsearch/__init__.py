# Makes the folder importable as a package.
