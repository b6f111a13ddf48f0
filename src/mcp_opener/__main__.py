from mcp_opener.server import main

main()
