from redis_response_cache.application.app import main

main()
