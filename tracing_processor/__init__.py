"""Main-thread task trees and input responsiveness estimates from Chrome traces."""
