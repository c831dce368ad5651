from sheetcheck.cli import main

main()
