from guidebook.workers.document_worker import main

main()
